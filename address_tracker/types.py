"""
Доменные типы значений: адрес аккаунта и 256-битное беззнаковое целое
"""

import re
from decimal import Decimal
from typing import Union

ADDRESS_LENGTH = 20
UINT256_MAX = 2**256 - 1
# Десятичных разрядов в UINT256_MAX
UINT256_DIGITS = 78

HEX_DIGITS_RE = re.compile(r"[0-9a-fA-F]*")


class Address:
    """
    20-байтовый адрес аккаунта

    Реализует обе возможности кодека: bytes(addr) и addr.set_bytes(data).
    """

    __slots__ = ("_data",)

    def __init__(self, data: bytes = b""):
        self._data = bytes(ADDRESS_LENGTH)
        if data:
            self.set_bytes(data)

    @classmethod
    def from_hex(cls, value: str) -> "Address":
        """
        Разбор адреса из hex строки (регистр и префикс 0x не важны)

        Raises:
            ValueError: Строка не является 20-байтовым hex значением
        """
        raw = value.strip()
        if raw[:2].lower() == "0x":
            raw = raw[2:]
        if len(raw) != ADDRESS_LENGTH * 2:
            raise ValueError(f"Некорректная длина адреса: {value!r}")
        # bytes.fromhex пропускает пробелы, поэтому цифры проверяются заранее
        if not HEX_DIGITS_RE.fullmatch(raw):
            raise ValueError(f"Некорректный hex адрес: {value!r}")
        return cls(bytes.fromhex(raw))

    def set_bytes(self, data: bytes) -> None:
        """Лишние ведущие байты отбрасываются, недостающие дополняются нулями"""
        data = bytes(data)
        if len(data) > ADDRESS_LENGTH:
            data = data[-ADDRESS_LENGTH:]
        self._data = data.rjust(ADDRESS_LENGTH, b"\x00")

    def __bytes__(self) -> bytes:
        return self._data

    @property
    def hex(self) -> str:
        """Нормализованная форма: 0x + hex в нижнем регистре"""
        return "0x" + self._data.hex()

    def __eq__(self, other):
        if isinstance(other, Address):
            return self._data == other._data
        return NotImplemented

    def __hash__(self):
        return hash(self._data)

    def __str__(self):
        return self.hex

    def __repr__(self):
        return f"<Address({self.hex})>"


class U256(int):
    """Беззнаковое целое в диапазоне [0, 2**256)"""

    def __new__(cls, value: Union[int, str, Decimal] = 0):
        if isinstance(value, Decimal):
            if not value.is_finite() or value.adjusted() >= UINT256_DIGITS:
                raise ValueError(f"Значение вне диапазона uint256: {value}")
            if value != value.to_integral_value():
                raise ValueError(f"U256 не допускает дробную часть: {value}")
            value = int(value)
        number = super().__new__(cls, value)
        if number < 0 or number > UINT256_MAX:
            raise ValueError(f"Значение вне диапазона uint256: {value}")
        return number

    def __str__(self):
        return int.__repr__(self)

    def __repr__(self):
        return f"U256({int(self)})"
