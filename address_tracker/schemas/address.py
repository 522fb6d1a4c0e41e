"""
Pydantic схемы для адресов
"""

from typing import Any

from pydantic import BaseModel, Field, field_validator


class AddressRecordOut(BaseModel):
    """Полная схема адреса"""

    guid: str
    address: str = Field(..., description="Адрес в нижнем регистре с префиксом 0x")
    address_type: int = Field(..., description="0 - пользователь, 1 - горячий, 2 - холодный")
    public_key: str
    timestamp: int = Field(..., description="Unix timestamp создания")

    @field_validator("address", mode="before")
    @classmethod
    def _address_to_hex(cls, value: Any) -> str:
        return str(value)

    class Config:
        from_attributes = True


class AddressExists(BaseModel):
    """Результат проверки адреса"""

    address: str
    exists: bool
    address_type: int
