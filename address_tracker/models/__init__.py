# Database models package

from .address import AddressRecord, AddressType

__all__ = ["AddressRecord", "AddressType"]
