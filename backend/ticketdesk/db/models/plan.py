# backend/ticketdesk/db/models/plan.py
from sqlalchemy import Column, String, Integer, Boolean, Numeric, JSON
from ticketdesk.db.base import BaseModel, generate_id


class SubscriptionPlan(BaseModel):
    """Operator-managed plan catalog; tenants copy the name on activation"""
    __tablename__ = "plans"

    id = Column(String(36), primary_key=True, default=generate_id, index=True)
    name = Column(String(100), nullable=False)
    months = Column(Integer, nullable=False)
    price = Column(Numeric(12, 2), nullable=False, default=0)
    currency = Column(String(10), nullable=False, default="GNF")
    features = Column(JSON, default=list)
    is_popular = Column(Boolean, default=False, nullable=False)
    order_index = Column(Integer, default=0, nullable=False)
