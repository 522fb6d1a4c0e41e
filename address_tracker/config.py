"""
Конфигурация приложения Address Tracker
"""

import logging
from typing import Optional

from pydantic import BaseModel
from pydantic_settings import BaseSettings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class DBConfig(BaseModel):
    """Параметры подключения к одной БД"""

    host: str = ""
    port: Optional[int] = None
    name: str = ""
    user: Optional[str] = None
    password: Optional[str] = None
    driver: str = "postgresql+psycopg2"


class AppConfig(BaseModel):
    """Конфигурация сервиса: миграции и две БД"""

    migrations: str
    master_db: DBConfig
    slave_db: DBConfig


class Settings(BaseSettings):
    """Настройки приложения"""

    # Общие настройки
    PROJECT_NAME: str = "Address Tracker"
    VERSION: str = "0.1.0"
    API_V1_STR: str = "/api"

    # Миграции
    MIGRATIONS_DIR: str = "./migrations"
    APPLY_MIGRATIONS_ON_STARTUP: bool = False

    # База данных
    DB_DRIVER: str = "postgresql+psycopg2"

    MASTER_DB_HOST: str = "127.0.0.1"
    MASTER_DB_PORT: Optional[int] = 5432
    MASTER_DB_NAME: str = "web3scanner"
    MASTER_DB_USER: Optional[str] = None
    MASTER_DB_PASSWORD: Optional[str] = None

    SLAVE_DB_HOST: str = "127.0.0.1"
    SLAVE_DB_PORT: Optional[int] = 5432
    SLAVE_DB_NAME: str = "web3scanner"
    SLAVE_DB_USER: Optional[str] = None
    SLAVE_DB_PASSWORD: Optional[str] = None

    # Сканер
    SCANNER_ENABLED: bool = True

    # Логирование
    LOG_LEVEL: str = "INFO"

    # Debug режим
    DEBUG: bool = False

    class Config:
        env_file = ".env"
        case_sensitive = True

    @property
    def master_db(self) -> DBConfig:
        return DBConfig(
            host=self.MASTER_DB_HOST,
            port=self.MASTER_DB_PORT,
            name=self.MASTER_DB_NAME,
            user=self.MASTER_DB_USER,
            password=self.MASTER_DB_PASSWORD,
            driver=self.DB_DRIVER,
        )

    @property
    def slave_db(self) -> DBConfig:
        return DBConfig(
            host=self.SLAVE_DB_HOST,
            port=self.SLAVE_DB_PORT,
            name=self.SLAVE_DB_NAME,
            user=self.SLAVE_DB_USER,
            password=self.SLAVE_DB_PASSWORD,
            driver=self.DB_DRIVER,
        )


def load_config(source: Optional[Settings] = None) -> AppConfig:
    """Сборка конфигурации сервиса из настроек"""
    source = source or settings
    return AppConfig(
        migrations=source.MIGRATIONS_DIR,
        master_db=source.master_db,
        slave_db=source.slave_db,
    )


def setup_logging(level: Optional[str] = None) -> None:
    """Настройка логирования в общем формате приложения"""
    logging.basicConfig(level=(level or settings.LOG_LEVEL).upper(), format=LOG_FORMAT)


# Глобальный экземпляр настроек
settings = Settings()
