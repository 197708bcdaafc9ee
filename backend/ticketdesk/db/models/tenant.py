# backend/ticketdesk/db/models/tenant.py
from sqlalchemy import Column, String, Numeric, JSON, DateTime
from sqlalchemy.orm import relationship
from ticketdesk.db.base import BaseModel, generate_id


class Tenant(BaseModel):
    """Reseller agency: balance, subscription window, status and settings"""
    __tablename__ = "tenants"

    id = Column(String(100), primary_key=True, index=True, default=generate_id)
    name = Column(String(255), nullable=False)

    # Operator kill switch, independent of the subscription window
    status = Column(String(20), default="active", nullable=False, index=True)

    # Subscription; plan_name is a point-in-time copy, not a foreign key
    plan_name = Column(String(100), nullable=False, default="TRIAL")
    subscription_start = Column(DateTime, nullable=True)
    subscription_end = Column(DateTime, nullable=True)

    # Prepaid import credit, 4 decimal places
    credits_balance = Column(Numeric(14, 4), nullable=False, default=0)

    # currency, receipt header/footer, contact info, modules
    settings = Column(JSON, default=dict)

    # Relationships
    users = relationship("User", back_populates="tenant")
    vouchers = relationship("Voucher", back_populates="tenant")
