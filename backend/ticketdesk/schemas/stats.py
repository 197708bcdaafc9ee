# backend/ticketdesk/schemas/stats.py
from pydantic import BaseModel


class DashboardStats(BaseModel):
    revenue: int
    sold_count: int
    stock_count: int
    tenant_count: int
    user_count: int
    currency: str

    class Config:
        from_attributes = True
