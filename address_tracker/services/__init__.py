# Business logic services package

from address_tracker.services.address_service import (
    AddressLookup,
    AddressService,
    AddressServiceError,
    RecordNotFoundError,
)
from address_tracker.services.scanner import Scanner, ScannerState

__all__ = [
    "AddressLookup",
    "AddressService",
    "AddressServiceError",
    "RecordNotFoundError",
    "Scanner",
    "ScannerState",
]
