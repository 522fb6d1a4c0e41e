"""
Настройка базы данных SQLAlchemy

Подключение с повторами, единица работы (транзакция) и применение
SQL миграций из каталога.
"""

import logging
import os
import sqlite3
from contextlib import contextmanager, nullcontext
from pathlib import Path
from typing import Callable, Iterator, List, Optional, TypeVar

from sqlalchemy import create_engine
from sqlalchemy.engine import URL, Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from address_tracker import retry
from address_tracker.config import DBConfig
from address_tracker.query_logger import QueryLogger

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Параметры переподключения к БД при старте
CONNECT_MAX_ATTEMPTS = 10


def connect_strategy() -> retry.Strategy:
    return retry.ExponentialStrategy(min=1.0, max=20.0, max_jitter=0.25)


# Базовый класс для моделей
Base = declarative_base()


class DatabaseError(Exception):
    """Исключение для ошибок слоя БД"""

    pass


class DatabaseConnectionError(DatabaseError):
    """БД недоступна (временная ошибка, повторяется)"""

    pass


class MigrationError(DatabaseError):
    """Ошибка применения SQL миграции"""

    pass


def build_dsn(db_config: DBConfig) -> URL:
    """
    Сборка строки подключения

    Необязательные параметры (порт, пользователь, пароль) не передаются,
    если не заданы.
    """
    query = {}
    if db_config.driver.startswith("postgresql"):
        query["sslmode"] = "disable"
    return URL.create(
        db_config.driver,
        username=db_config.user or None,
        password=db_config.password or None,
        host=db_config.host or None,
        port=db_config.port or None,
        database=db_config.name or None,
        query=query,
    )


def _create_engine(url: URL) -> Engine:
    return create_engine(
        url,
        connect_args=(
            {"check_same_thread": False} if url.drivername.startswith("sqlite") else {}
        ),
        pool_pre_ping=True,
    )


class Database:
    """
    Доступ к БД: хранилище адресов, транзакции, миграции

    Экземпляр безопасен для параллельного использования: каждая операция
    хранилища открывает свою сессию из общего пула.
    """

    def __init__(self, engine: Engine, session: Optional[Session] = None):
        from address_tracker.services.address_service import AddressService

        self._engine = engine
        self._session_factory = sessionmaker(
            bind=engine, autocommit=False, autoflush=False, expire_on_commit=False
        )
        self._session = session
        self.addresses = AddressService(self._session_scope)

    @classmethod
    def connect(
        cls,
        db_config: DBConfig,
        ctx: Optional[retry.Context] = None,
        *,
        max_attempts: int = CONNECT_MAX_ATTEMPTS,
        strategy: Optional[retry.Strategy] = None,
        query_logger: Optional[QueryLogger] = None,
    ) -> "Database":
        """
        Подключение к БД с повторами

        Raises:
            retry.FailedPermanentlyError: БД недоступна после всех попыток
        """
        url = build_dsn(db_config)

        def open_engine() -> Engine:
            engine = _create_engine(url)
            try:
                # create_engine ленивый - проверяем реальным соединением
                with engine.connect():
                    pass
            except SQLAlchemyError as e:
                engine.dispose()
                raise DatabaseConnectionError(
                    f"failed to connect to database: {e}"
                ) from e
            return engine

        engine = retry.do(
            ctx, max_attempts, strategy or connect_strategy(), open_engine
        )
        (query_logger or QueryLogger()).attach(engine)
        logger.info(
            f"Подключено к БД {url.render_as_string(hide_password=True)}"
        )
        return cls(engine)

    @property
    def engine(self) -> Engine:
        return self._engine

    @property
    def in_transaction(self) -> bool:
        return self._session is not None

    def _session_scope(self):
        if self._session is not None:
            return nullcontext(self._session)
        return self._session_factory.begin()

    @contextmanager
    def transactional(self) -> Iterator["Database"]:
        """
        Единица работы: все операции выполняются в одной транзакции

        Коммит при нормальном выходе, откат при любом исключении.
        """
        if self._session is not None:
            raise DatabaseError("nested transactions are not supported")
        with self._session_factory.begin() as session:
            yield Database(self._engine, session=session)

    def transaction(self, fn: Callable[["Database"], T]) -> T:
        with self.transactional() as tx_db:
            return fn(tx_db)

    def _require_root(self, operation: str) -> None:
        if self._session is not None:
            raise DatabaseError(f"{operation} is not allowed inside a transaction")

    def close(self) -> None:
        """Закрытие пула соединений (только вне транзакции)"""
        self._require_root("close")
        self._engine.dispose()
        logger.info("Соединения с БД закрыты")

    def execute_sql_migration(self, migrations_folder: str) -> List[str]:
        """
        Применение всех SQL файлов из каталога (рекурсивно)

        Каждый файл выполняется целиком как один скрипт, в порядке обхода.
        Пути вне каталога отклоняются до чтения файла.

        Returns:
            Список примененных файлов
        """
        self._require_root("migrations")
        root = Path(migrations_folder).resolve()
        if not root.is_dir():
            raise MigrationError(f"Failed to process migration folder: {migrations_folder}")

        applied = []
        for path in _walk(root):
            resolved = path.resolve()
            if resolved == root or not resolved.is_relative_to(root):
                raise MigrationError(f"invalid migration file path: {path}")

            try:
                sql = resolved.read_text(encoding="utf-8")
            except OSError as e:
                raise MigrationError(f"Error reading SQL file: {path}") from e

            try:
                self._execute_script(sql)
            except (SQLAlchemyError, sqlite3.Error) as e:
                raise MigrationError(f"Error executing SQL script: {path}") from e

            logger.info(f"Применена миграция {path.relative_to(root)}")
            applied.append(str(path))
        return applied

    def _execute_script(self, sql: str) -> None:
        with self._engine.begin() as conn:
            if conn.dialect.name == "sqlite":
                # sqlite3 выполняет несколько выражений только через executescript
                conn.connection.driver_connection.executescript(sql)
            else:
                # без параметров, иначе драйвер разбирает % в тексте скрипта
                conn.execution_options(no_parameters=True).exec_driver_sql(sql)


def _walk(root: Path) -> Iterator[Path]:
    """
    Обход каталога в лексическом порядке

    Каталоги пропускаются (символические ссылки на каталоги не раскрываются),
    файлы и вложенные каталоги чередуются по имени.
    """
    with os.scandir(root) as it:
        entries = sorted(it, key=lambda entry: entry.name)
    for entry in entries:
        path = root / entry.name
        if entry.is_dir(follow_symlinks=False):
            yield from _walk(path)
        else:
            yield path
