# backend/ticketdesk/db/models/activity_log.py
from sqlalchemy import Column, String, Text
from ticketdesk.db.base import BaseModel, generate_id


class ActivityLog(BaseModel):
    """Append-only audit trail. No foreign keys: entries outlive deleted tenants and users."""
    __tablename__ = "logs"

    id = Column(String(36), primary_key=True, default=generate_id, index=True)
    tenant_id = Column(String(100), nullable=True, index=True)
    user_id = Column(String(36), nullable=True, index=True)
    user_name = Column(String(255), nullable=True)

    action = Column(String(50), nullable=False, index=True)
    details = Column(Text, nullable=False, default="")
