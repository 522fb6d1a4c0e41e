"""
Сервис сканера адресов

Сканирование цепочки пока не реализовано: start() сохраняет адрес
горячего кошелька (если его еще нет) и читает список адресов обратно.
"""

import enum
import logging
import threading
import time
from typing import List, Optional

from address_tracker.config import AppConfig
from address_tracker.database import Database
from address_tracker.models.address import AddressRecord, AddressType
from address_tracker.retry import Context
from address_tracker.types import Address

logger = logging.getLogger(__name__)

DEFAULT_HOT_WALLET = "0x0fa09C3A328792253f8dee7116848723b72a6d2e"


class ScannerState(enum.Enum):
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"


class ScannerStoppedError(Exception):
    """Сканер остановлен"""

    pass


class Scanner:
    """
    Сканер с явным жизненным циклом RUNNING -> STOPPING -> STOPPED

    Args:
        db: Подключение к БД
        shutdown: Контекст, который отменяется при остановке сканера
    """

    def __init__(self, db: Database, shutdown: Optional[Context] = None):
        self.db = db
        self.shutdown = shutdown or Context.background()
        self._state = ScannerState.RUNNING
        self._state_lock = threading.Lock()

    @classmethod
    def create(
        cls, ctx: Optional[Context], cfg: AppConfig, shutdown: Optional[Context] = None
    ) -> "Scanner":
        """Подключение к основной БД и создание сканера"""
        try:
            db = Database.connect(cfg.master_db, ctx)
        except Exception as e:
            logger.error(f"Ошибка инициализации БД: {e}")
            raise
        return cls(db, shutdown)

    @property
    def state(self) -> ScannerState:
        with self._state_lock:
            return self._state

    @property
    def stopped(self) -> bool:
        return self.state is ScannerState.STOPPED

    def _compare_and_swap(self, expected: ScannerState, new: ScannerState) -> bool:
        with self._state_lock:
            if self._state is not expected:
                return False
            self._state = new
            return True

    def start(self, ctx: Optional[Context] = None) -> List[AddressRecord]:
        """
        Запуск сканера

        Returns:
            Все адреса из БД после сохранения адреса горячего кошелька
        """
        if self.state is not ScannerState.RUNNING:
            raise ScannerStoppedError("Сканер остановлен")
        for current in (ctx, self.shutdown):
            err = current.err() if current is not None else None
            if err is not None:
                raise err

        logger.info("Запуск сканера...")
        hot_wallet = Address.from_hex(DEFAULT_HOT_WALLET)
        found, _ = self.db.addresses.address_exists(hot_wallet)
        if not found:
            self.db.addresses.store_addresses(
                [
                    AddressRecord(
                        address=hot_wallet,
                        address_type=int(AddressType.HOT_WALLET),
                        public_key=DEFAULT_HOT_WALLET,
                        timestamp=int(time.time()),
                    )
                ]
            )
            logger.info(f"Сохранен адрес горячего кошелька {hot_wallet}")

        addresses = self.db.addresses.get_all_addresses()
        for item in addresses:
            logger.info(
                f"Адрес {item.address}: тип={item.address_type}, "
                f"timestamp={item.timestamp}"
            )
        return addresses

    def stop(self, cause: Optional[BaseException] = None) -> bool:
        """
        Остановка сканера

        Returns:
            False, если сканер уже остановлен или останавливается
        """
        if not self._compare_and_swap(ScannerState.RUNNING, ScannerState.STOPPING):
            logger.warning("Сканер уже остановлен")
            return False

        logger.info("Остановка сканера...")
        self.shutdown.cancel(cause or ScannerStoppedError("Сканер остановлен"))
        try:
            self.db.close()
        finally:
            self._compare_and_swap(ScannerState.STOPPING, ScannerState.STOPPED)
            logger.info("Сканер остановлен")
        return True
