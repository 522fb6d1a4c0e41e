"""
CLI: address-tracker migrate | index | serve
"""

import logging
import signal
from typing import Optional

import typer

from address_tracker.config import load_config, settings, setup_logging

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="address-tracker",
    help="Хранилище классифицированных адресов.",
    no_args_is_help=True,
)


@app.callback()
def main(
    log_level: str = typer.Option(settings.LOG_LEVEL, "--log-level", help="Уровень логирования"),
) -> None:
    setup_logging(log_level)


@app.command()
def migrate(
    migrations_dir: Optional[str] = typer.Option(
        None, "--migrations-dir", "-m", help="Каталог с SQL миграциями"
    ),
) -> None:
    """Применить SQL миграции к основной БД."""
    from address_tracker.database import Database

    cfg = load_config()
    folder = migrations_dir or cfg.migrations
    db = Database.connect(cfg.master_db)
    try:
        applied = db.execute_sql_migration(folder)
    finally:
        db.close()
    typer.echo(f"Применено миграций: {len(applied)}")


@app.command()
def index() -> None:
    """Запустить сканер адресов."""
    from address_tracker.retry import Context
    from address_tracker.services.scanner import Scanner

    shutdown = Context.background()
    scanner = Scanner.create(shutdown, load_config(), shutdown)

    def _handle_signal(signum, frame):
        logger.info(f"Получен сигнал {signum}, останавливаем сканер")
        scanner.stop()

    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)

    try:
        addresses = scanner.start(shutdown)
        typer.echo(f"Адресов в БД: {len(addresses)}")
    finally:
        scanner.stop()


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", "--host"),
    port: int = typer.Option(8000, "--port"),
) -> None:
    """Запустить HTTP API."""
    import uvicorn

    uvicorn.run("address_tracker.main:app", host=host, port=port, reload=settings.DEBUG)


if __name__ == "__main__":
    app()
