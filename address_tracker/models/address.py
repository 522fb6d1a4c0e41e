"""
SQLAlchemy модель классифицированных адресов
"""

import enum
import uuid

from sqlalchemy import CheckConstraint, Column, Integer, SmallInteger, String

from address_tracker.database import Base
from address_tracker.serializers import BytesCodec, HexBytes
from address_tracker.types import Address

address_codec = BytesCodec()


class AddressType(enum.IntEnum):
    """Классификация адреса"""

    USER = 0
    HOT_WALLET = 1  # адрес для сбора средств
    COLD_WALLET = 2


def _new_guid() -> str:
    return str(uuid.uuid4())


class AddressRecord(Base):
    """Модель адреса (пользовательский, горячий или холодный кошелек)"""

    __tablename__ = "addresses"
    __table_args__ = (CheckConstraint("timestamp > 0", name="addresses_timestamp_check"),)

    guid = Column(String, primary_key=True, default=_new_guid)
    address = Column(
        HexBytes(Address, codec=address_codec), unique=True, nullable=False, index=True
    )
    address_type = Column(SmallInteger, nullable=False, default=int(AddressType.USER))
    public_key = Column(String, nullable=False)
    timestamp = Column(Integer, nullable=False, index=True)  # Unix timestamp

    def __repr__(self):
        return f"<AddressRecord(address='{self.address}', address_type={self.address_type})>"
