# Pydantic schemas package

from .address import AddressExists, AddressRecordOut

__all__ = ["AddressExists", "AddressRecordOut"]
