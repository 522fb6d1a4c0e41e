"""
Жизненный цикл приложения: подключение к БД и запуск сканера
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from address_tracker.config import load_config, settings
from address_tracker.retry import Context
from address_tracker.services.scanner import Scanner

logger = logging.getLogger(__name__)


async def start_scanner(app: FastAPI, shutdown: Context) -> None:
    """Подключение к БД (с повторами) и запуск сканера"""
    cfg = load_config()

    # Подключение блокирующее и может ждать БД десятки секунд
    scanner = await asyncio.to_thread(Scanner.create, shutdown, cfg, shutdown)
    app.state.scanner = scanner
    app.state.db = scanner.db

    if settings.APPLY_MIGRATIONS_ON_STARTUP:
        applied = await asyncio.to_thread(
            scanner.db.execute_sql_migration, cfg.migrations
        )
        logger.info(f"Применено миграций: {len(applied)}")

    if settings.SCANNER_ENABLED:
        await asyncio.to_thread(scanner.start, shutdown)
        logger.info("Сканер запущен")


async def stop_scanner(app: FastAPI) -> None:
    """Остановка сканера"""
    scanner = getattr(app.state, "scanner", None)
    if scanner is None:
        logger.warning("Сканер не запущен")
        return

    try:
        await asyncio.to_thread(scanner.stop)
    except Exception as e:
        logger.error(f"Ошибка при остановке сканера: {e}")
    finally:
        app.state.scanner = None
        app.state.db = None


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Контекстный менеджер жизненного цикла приложения

    Подключается к БД при старте приложения
    и останавливает сканер при завершении
    """
    # Startup
    logger.info("Запуск приложения...")
    shutdown = Context.background()

    try:
        await start_scanner(app, shutdown)
        logger.info("Приложение запущено успешно")

        yield

    finally:
        # Shutdown
        logger.info("Остановка приложения...")
        shutdown.cancel()
        await stop_scanner(app)
        logger.info("Приложение остановлено")
