# backend/ticketdesk/db/models/voucher.py
from sqlalchemy import (
    Column, String, Integer, DateTime, ForeignKey, CheckConstraint, UniqueConstraint, Index,
)
from sqlalchemy.orm import relationship
from ticketdesk.db.base import BaseModel, generate_id


class Voucher(BaseModel):
    """
    Sellable WiFi credential.

    Lifecycle: UNSOLD -> SOLD (sell, exactly once) -> UNSOLD (cancel).
    sold_by / sold_at are null while UNSOLD. Only UNSOLD rows may be deleted.
    """
    __tablename__ = "vouchers"
    __table_args__ = (
        CheckConstraint(
            "status IN ('UNSOLD', 'SOLD', 'ACTIVE', 'EXPIRED')",
            name="vouchers_status_check",
        ),
        CheckConstraint("price >= 0", name="vouchers_price_check"),
        UniqueConstraint("tenant_id", "username", name="uq_voucher_tenant_username"),
        Index("ix_vouchers_tenant_profile_status", "tenant_id", "profile", "status"),
    )

    id = Column(String(36), primary_key=True, default=generate_id, index=True)
    tenant_id = Column(String(100), ForeignKey("tenants.id"), nullable=False, index=True)

    username = Column(String(255), nullable=False)
    password = Column(String(255), nullable=False, default="")
    profile = Column(String(100), nullable=False, default="Default")
    time_limit = Column(String(100), nullable=False, default="0")
    price = Column(Integer, nullable=False, default=0)
    expire_at = Column(DateTime, nullable=True)

    status = Column(String(20), nullable=False, default="UNSOLD", index=True)
    created_by = Column(String(36), nullable=True)
    sold_by = Column(String(36), nullable=True)
    sold_at = Column(DateTime, nullable=True)

    # Relationships
    tenant = relationship("Tenant", back_populates="vouchers")
