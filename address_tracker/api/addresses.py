"""
API endpoints для работы с адресами
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request

from address_tracker.database import Database
from address_tracker.schemas.address import AddressExists, AddressRecordOut
from address_tracker.services.address_service import RecordNotFoundError, normalize_address
from address_tracker.types import Address

router = APIRouter(prefix="/addresses", tags=["addresses"])


def get_db(request: Request) -> Database:
    """Подключение к БД, созданное при старте приложения"""
    db = getattr(request.app.state, "db", None)
    if db is None:
        raise HTTPException(status_code=503, detail="База данных недоступна")
    return db


def _parse_address(address: str) -> Address:
    try:
        return normalize_address(address)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("", response_model=List[AddressRecordOut])
async def get_addresses(db: Database = Depends(get_db)):
    """
    Получить все адреса
    """
    return db.addresses.get_all_addresses()


@router.get("/hot-wallet", response_model=AddressRecordOut)
async def get_hot_wallet(db: Database = Depends(get_db)):
    """
    Получить адрес горячего кошелька
    """
    record = db.addresses.query_hot_wallet()
    if record is None:
        raise HTTPException(status_code=404, detail="Горячий кошелек не настроен")
    return record


@router.get("/cold-wallet", response_model=AddressRecordOut)
async def get_cold_wallet(db: Database = Depends(get_db)):
    """
    Получить адрес холодного кошелька
    """
    record = db.addresses.query_cold_wallet()
    if record is None:
        raise HTTPException(status_code=404, detail="Холодный кошелек не настроен")
    return record


@router.get("/{address}", response_model=AddressRecordOut)
async def get_address(address: str, db: Database = Depends(get_db)):
    """
    Получить информацию об адресе
    """
    try:
        return db.addresses.query_by_address(_parse_address(address))
    except RecordNotFoundError:
        raise HTTPException(status_code=404, detail=f"Адрес {address} не найден")


@router.get("/{address}/exists", response_model=AddressExists)
async def address_exists(address: str, db: Database = Depends(get_db)):
    """
    Проверить, отслеживается ли адрес
    """
    normalized = _parse_address(address)
    exists, address_type = db.addresses.address_exists(normalized)
    return AddressExists(address=normalized.hex, exists=exists, address_type=address_type)
