# backend/ticketdesk/schemas/voucher.py
from pydantic import BaseModel, Field
from typing import List, Optional, Union
from datetime import datetime
from decimal import Decimal


class VoucherRow(BaseModel):
    """One parsed import row; normalization happens in the inventory engine"""
    username: Optional[str] = None
    password: Optional[str] = None
    profile: Optional[str] = None
    time_limit: Optional[str] = None
    price: Optional[Union[int, str]] = None


class VoucherImport(BaseModel):
    rows: List[VoucherRow]


class ImportResult(BaseModel):
    inserted_count: int
    skipped_count: int
    cost: Decimal
    balance: Decimal


class PriceUpdate(BaseModel):
    price: int = Field(..., ge=0)


class ProfilePriceUpdate(PriceUpdate):
    profile: str


class ProfileStock(BaseModel):
    profile: str
    unsold_count: int
    price: int

    class Config:
        from_attributes = True


class VoucherInDB(BaseModel):
    id: str
    tenant_id: str
    username: str
    password: str
    profile: str
    time_limit: str
    price: int
    status: str
    expire_at: Optional[datetime] = None
    created_by: Optional[str] = None
    sold_by: Optional[str] = None
    sold_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class Voucher(VoucherInDB):
    pass
