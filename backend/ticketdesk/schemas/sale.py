# backend/ticketdesk/schemas/sale.py
from pydantic import BaseModel
from typing import Optional
from datetime import datetime

from ticketdesk.core.constants import PaymentMethod


class SaleCreate(BaseModel):
    customer_phone: Optional[str] = None
    payment_method: PaymentMethod = PaymentMethod.CASH


class SellNextRequest(SaleCreate):
    profile: str


class SaleInDB(BaseModel):
    id: str
    voucher_id: str
    tenant_id: str
    seller_id: str
    seller_name: Optional[str] = None
    voucher_username: str
    voucher_profile: str
    voucher_time_limit: str
    amount: int
    sold_at: datetime
    payment_method: str
    customer_phone: Optional[str] = None

    class Config:
        from_attributes = True


class Sale(SaleInDB):
    pass


class Receipt(BaseModel):
    """What the seller terminal prints after a sale"""
    sale: Sale
    voucher_password: str
    header: str = ""
    footer: str = ""
    currency: str
