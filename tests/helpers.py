"""
Общие утилиты тестов: временная SQLite БД
"""

import os
import time
from typing import Optional

from address_tracker.config import DBConfig
from address_tracker.database import Base, Database
from address_tracker.models.address import AddressRecord, AddressType
from address_tracker.retry import fixed
from address_tracker.types import Address


def create_test_database(directory: str) -> Database:
    """SQLite БД во временном каталоге с созданными таблицами"""
    cfg = DBConfig(driver="sqlite", name=os.path.join(directory, "test.db"))
    db = Database.connect(cfg, max_attempts=1, strategy=fixed(0))
    Base.metadata.create_all(db.engine)
    return db


def make_record(
    address: str,
    address_type: AddressType = AddressType.USER,
    timestamp: Optional[int] = None,
) -> AddressRecord:
    return AddressRecord(
        address=Address.from_hex(address),
        address_type=int(address_type),
        public_key=address,
        timestamp=timestamp if timestamp is not None else int(time.time()),
    )
