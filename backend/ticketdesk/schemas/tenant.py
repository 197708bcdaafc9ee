# backend/ticketdesk/schemas/tenant.py
from pydantic import BaseModel, Field
from typing import Optional, Dict, Any
from datetime import datetime
from decimal import Decimal

from ticketdesk.core.constants import TenantStatus


class TenantBase(BaseModel):
    name: str


class TenantCreate(TenantBase):
    pass


class TenantUpdate(BaseModel):
    name: Optional[str] = None
    settings: Optional[Dict[str, Any]] = None


class TenantStatusUpdate(BaseModel):
    status: TenantStatus


class SubscriptionActivate(BaseModel):
    plan_name: str
    months: int = Field(..., gt=0)


class SubscriptionRenew(BaseModel):
    days: int = Field(..., gt=0)


class ModulesUpdate(BaseModel):
    modules: Dict[str, bool]


class CreditRecharge(BaseModel):
    amount: Decimal
    note: str = ""


class CreditBalance(BaseModel):
    tenant_id: str
    credits_balance: Decimal


class TenantInDB(TenantBase):
    id: str
    status: str
    plan_name: str
    subscription_start: Optional[datetime] = None
    subscription_end: Optional[datetime] = None
    credits_balance: Decimal
    settings: Dict[str, Any] = {}
    created_at: datetime

    class Config:
        from_attributes = True


class Tenant(TenantInDB):
    license_active: bool = False
    remaining_days: int = 0
