# backend/ticketdesk/schemas/activity_log.py
from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class ActivityLog(BaseModel):
    id: str
    tenant_id: Optional[str] = None
    user_id: Optional[str] = None
    user_name: Optional[str] = None
    action: str
    details: str
    created_at: datetime

    class Config:
        from_attributes = True
