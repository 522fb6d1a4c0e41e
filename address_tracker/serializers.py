"""
Кодеки бинарных доменных значений для хранения в БД

BytesCodec переводит значения фиксированной ширины (адреса) в hex строку
с префиксом 0x и обратно. U256Codec хранит 256-битные целые как десятичную
строку. Кодеки передаются в типы колонок явно, глобального реестра нет.
"""

import types
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Protocol, Union, get_args, get_origin, runtime_checkable

from sqlalchemy.dialects import postgresql
from sqlalchemy.types import String, TypeDecorator

from address_tracker.types import HEX_DIGITS_RE, U256


@runtime_checkable
class SupportsBytes(Protocol):
    """Значение, отдающее свое бинарное представление"""

    def __bytes__(self) -> bytes: ...


@runtime_checkable
class SupportsSetBytes(Protocol):
    """Значение, принимающее бинарное представление"""

    def set_bytes(self, data: bytes) -> None: ...


class SerializerError(Exception):
    """Базовая ошибка кодеков"""

    pass


class UnexpectedTypeError(SerializerError):
    """В БД лежит значение неожиданного типа"""

    pass


class HexDecodeError(SerializerError):
    """Строка не является корректным hex значением"""

    pass


class DecodeError(SerializerError):
    """Не удалось декодировать значение из БД"""

    pass


class UnsupportedDepthError(SerializerError):
    """Целевой тип обернут глубже одного уровня Optional"""

    pass


class CapabilityError(SerializerError):
    """Тип не поддерживает нужную операцию (bytes / set_bytes)"""

    pass


class ValueRangeError(SerializerError):
    """Значение вне допустимого диапазона"""

    pass


def encode_hex(data: bytes) -> str:
    return "0x" + data.hex()


def decode_hex(value: str) -> bytes:
    """
    Декодирование hex строки с обязательным префиксом 0x

    Raises:
        HexDecodeError: Пустая строка, нет префикса, нечетная длина
            или недопустимые символы
    """
    if not value:
        raise HexDecodeError("empty hex string")
    if value[:2] not in ("0x", "0X"):
        raise HexDecodeError(f"hex string without 0x prefix: {value!r}")
    digits = value[2:]
    if len(digits) % 2:
        raise HexDecodeError(f"hex string of odd length: {value!r}")
    if not HEX_DIGITS_RE.fullmatch(digits):
        raise HexDecodeError(f"invalid hex string: {value!r}")
    return bytes.fromhex(digits)


def _resolve_target(target: Any) -> type:
    """Снимает один уровень Optional с целевого типа"""
    origin = get_origin(target)
    if origin is Union or origin is types.UnionType:
        args = [arg for arg in get_args(target) if arg is not type(None)]
        if len(args) != 1:
            raise CapabilityError(f"ambiguous decode target: {target}")
        inner = args[0]
        if get_origin(inner) is not None:
            raise UnsupportedDepthError(
                f"one level of Optional is the max depth supported: {target}"
            )
        return inner
    if origin is not None:
        raise UnsupportedDepthError(
            f"one level of Optional is the max depth supported: {target}"
        )
    return target


class BytesCodec:
    """Кодек значений с возможностями bytes(value) / value.set_bytes(data)"""

    def encode(self, value: Optional[SupportsBytes]) -> Optional[str]:
        if value is None:
            return None
        if not isinstance(value, SupportsBytes) or isinstance(value, str):
            raise CapabilityError(
                f"value does not support bytes(): {type(value).__name__}"
            )
        return encode_hex(bytes(value))

    def decode(self, db_value: Any, target: Any) -> Any:
        """
        Восстановление значения целевого типа из строки БД

        Args:
            db_value: Значение из БД (None допускается)
            target: Класс значения или Optional[класс]

        Raises:
            UnexpectedTypeError: db_value не строка
            DecodeError: Некорректный hex
            UnsupportedDepthError: Слишком глубокая обертка целевого типа
            CapabilityError: Целевой тип не имеет set_bytes
        """
        if db_value is None:
            return None

        if not isinstance(db_value, str):
            raise UnexpectedTypeError(
                f"expected hex string as the database value: {type(db_value).__name__}"
            )

        try:
            data = decode_hex(db_value)
        except HexDecodeError as e:
            raise DecodeError(f"failed to decode database value: {e}") from e

        value_type = _resolve_target(target)
        if not isinstance(value_type, type) or not issubclass(
            value_type, SupportsSetBytes
        ):
            raise CapabilityError(
                f"field does not satisfy the set_bytes(bytes) interface: "
                f"{getattr(value_type, '__name__', value_type)}"
            )

        value = value_type()
        value.set_bytes(data)
        return value


class U256Codec:
    """Кодек 256-битных беззнаковых целых в десятичную строку"""

    def encode(self, value: Optional[int]) -> Optional[str]:
        if value is None:
            return None
        if isinstance(value, bool) or not isinstance(value, (int, Decimal)):
            raise UnexpectedTypeError(
                f"expected integer value for uint256: {type(value).__name__}"
            )
        return str(int(self._validate(value)))

    def decode(self, db_value: Any) -> Optional[U256]:
        if db_value is None:
            return None
        if isinstance(db_value, bool) or not isinstance(db_value, (str, int, Decimal)):
            raise UnexpectedTypeError(
                f"expected numeric string as the database value: {type(db_value).__name__}"
            )
        if isinstance(db_value, str):
            try:
                db_value = Decimal(db_value)
            except InvalidOperation as e:
                raise DecodeError(
                    f"failed to decode database value: {db_value!r}"
                ) from e
        return self._validate(db_value)

    @staticmethod
    def _validate(value) -> U256:
        try:
            return U256(value)
        except (ValueError, ArithmeticError) as e:
            raise ValueRangeError(f"invalid uint256 value {value}: {e}") from e


class HexBytes(TypeDecorator):
    """
    Колонка для бинарных значений в виде hex строки

    Пример:
        address = Column(HexBytes(Address), unique=True)
    """

    impl = String
    cache_ok = True

    def __init__(self, target: Any, codec: Optional[BytesCodec] = None, length=None):
        super().__init__(length)
        self.target = target
        self.codec = codec or BytesCodec()

    def process_bind_param(self, value, dialect):
        return self.codec.encode(value)

    def process_result_value(self, value, dialect):
        return self.codec.decode(value, self.target)


class Uint256(TypeDecorator):
    """Колонка uint256: NUMERIC(78, 0) в PostgreSQL, строка в остальных БД"""

    impl = String
    cache_ok = True

    def __init__(self, codec: Optional[U256Codec] = None):
        super().__init__()
        self.codec = codec or U256Codec()

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(postgresql.NUMERIC(78, 0))
        return dialect.type_descriptor(String())

    def process_bind_param(self, value, dialect):
        return self.codec.encode(value)

    def process_result_value(self, value, dialect):
        return self.codec.decode(value)
