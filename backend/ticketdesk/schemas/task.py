# backend/ticketdesk/schemas/task.py
from pydantic import BaseModel
from typing import Optional
from datetime import datetime

from ticketdesk.core.constants import TaskPriority, TaskStatus


class TaskCreate(BaseModel):
    title: Optional[str] = None
    description: str = ""
    priority: TaskPriority = TaskPriority.MEDIUM
    assigned_to: Optional[str] = None
    due_date: Optional[datetime] = None
    tenant_id: Optional[str] = None


class TaskStatusUpdate(BaseModel):
    status: TaskStatus


class Task(BaseModel):
    id: str
    tenant_id: str
    title: str
    description: str
    status: str
    priority: str
    assigned_to: Optional[str] = None
    assigned_to_name: Optional[str] = None
    due_date: Optional[datetime] = None
    created_by: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True
