# backend/ticketdesk/db/models/user.py
from sqlalchemy import Column, String, Boolean, ForeignKey, DateTime
from sqlalchemy.orm import relationship
from ticketdesk.db.base import BaseModel, generate_id


class User(BaseModel):
    """Tenant member or platform operator"""
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_id, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    hashed_pin = Column(String(255), nullable=True)

    display_name = Column(String(255), nullable=True)

    # Tenant relationship
    tenant_id = Column(String(100), ForeignKey("tenants.id"), nullable=False, index=True)
    role = Column(String(20), default="SELLER", nullable=False)  # SUPER_ADMIN, ADMIN, SELLER

    # Status
    is_active = Column(Boolean, default=True, nullable=False)
    last_login = Column(DateTime, nullable=True)

    # Relationships
    tenant = relationship("Tenant", back_populates="users")
