# backend/ticketdesk/schemas/plan.py
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from decimal import Decimal


class PlanBase(BaseModel):
    name: str
    months: int = Field(..., gt=0)
    price: Decimal = Field(default=Decimal("0"), ge=0)
    currency: str = "GNF"
    features: List[str] = []
    is_popular: bool = False
    order_index: int = 0


class PlanCreate(PlanBase):
    pass


class PlanUpdate(BaseModel):
    name: Optional[str] = None
    months: Optional[int] = Field(default=None, gt=0)
    price: Optional[Decimal] = Field(default=None, ge=0)
    currency: Optional[str] = None
    features: Optional[List[str]] = None
    is_popular: Optional[bool] = None
    order_index: Optional[int] = None


class PlanInDB(PlanBase):
    id: str
    created_at: datetime

    class Config:
        from_attributes = True


class Plan(PlanInDB):
    pass
