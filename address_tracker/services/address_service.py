"""
Сервис хранения классифицированных адресов
"""

import logging
from dataclasses import dataclass
from typing import Callable, ContextManager, List, Optional, Sequence, Tuple, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from address_tracker.models.address import AddressRecord, AddressType
from address_tracker.serializers import SerializerError
from address_tracker.types import Address

logger = logging.getLogger(__name__)

SessionScope = Callable[[], ContextManager[Session]]


class AddressServiceError(Exception):
    """Исключение для ошибок сервиса адресов"""

    pass


class RecordNotFoundError(AddressServiceError):
    """Запись не найдена"""

    pass


@dataclass
class AddressLookup:
    """Результат проверки адреса; error заполнен, если запрос упал"""

    found: bool
    address_type: int = 0
    error: Optional[Exception] = None


def normalize_address(address: Union[Address, str]) -> Address:
    """Адрес в нормализованном виде (hex в нижнем регистре при сохранении)"""
    if isinstance(address, Address):
        return address
    return Address.from_hex(address)


class AddressService:
    """
    Сервис для работы с адресами

    Args:
        session_scope: Фабрика контекста сессии. Вне транзакции каждая
            операция получает свою сессию и коммитит ее; внутри единицы
            работы все операции делят одну сессию.
    """

    def __init__(self, session_scope: SessionScope):
        self._session_scope = session_scope

    def store_addresses(self, records: Sequence[AddressRecord]) -> None:
        """
        Пакетная вставка адресов

        Дубликат адреса приводит к IntegrityError, которая не повторяется
        и пробрасывается как есть.
        """
        if not records:
            return
        with self._session_scope() as session:
            session.add_all(records)
            session.flush()
        logger.debug(f"Сохранено адресов: {len(records)}")

    def lookup_address(self, address: Union[Address, str]) -> AddressLookup:
        """
        Проверка адреса с различением 'не найден' и 'ошибка запроса'

        Некорректная hex строка считается ошибкой запроса.
        """
        try:
            record = self.query_by_address(address)
        except RecordNotFoundError:
            return AddressLookup(found=False)
        except (SQLAlchemyError, SerializerError, ValueError) as e:
            logger.error(f"Ошибка проверки адреса {address}: {e}")
            return AddressLookup(found=False, error=e)
        return AddressLookup(found=True, address_type=record.address_type)

    def address_exists(self, address: Union[Address, str]) -> Tuple[bool, int]:
        """
        Существует ли адрес и его тип

        Returns:
            (False, 0) если адрес не найден или запрос завершился ошибкой
        """
        result = self.lookup_address(address)
        return result.found, result.address_type

    def query_by_address(self, address: Union[Address, str]) -> AddressRecord:
        """
        Получение записи по адресу

        Raises:
            RecordNotFoundError: Адрес не найден
        """
        normalized = normalize_address(address)
        with self._session_scope() as session:
            record = (
                session.query(AddressRecord)
                .filter(AddressRecord.address == normalized)
                .first()
            )
        if record is None:
            raise RecordNotFoundError(f"Адрес {normalized} не найден")
        return record

    def query_hot_wallet(self) -> Optional[AddressRecord]:
        """Горячий кошелек или None, если еще не настроен"""
        return self._query_wallet(AddressType.HOT_WALLET)

    def query_cold_wallet(self) -> Optional[AddressRecord]:
        """Холодный кошелек или None, если еще не настроен"""
        return self._query_wallet(AddressType.COLD_WALLET)

    def _query_wallet(self, address_type: AddressType) -> Optional[AddressRecord]:
        # Уникальность кошелька по типу не обеспечена ограничением в БД
        with self._session_scope() as session:
            records = (
                session.query(AddressRecord)
                .filter(AddressRecord.address_type == int(address_type))
                .order_by(AddressRecord.timestamp, AddressRecord.guid)
                .limit(2)
                .all()
            )
        if not records:
            return None
        if len(records) > 1:
            logger.warning(
                f"Найдено несколько адресов типа {address_type.name}, "
                f"используется {records[0].address}"
            )
        return records[0]

    def get_all_addresses(self) -> List[AddressRecord]:
        """Все адреса (пустой список, если адресов нет)"""
        with self._session_scope() as session:
            return session.query(AddressRecord).all()
