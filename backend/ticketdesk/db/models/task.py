# backend/ticketdesk/db/models/task.py
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, CheckConstraint
from ticketdesk.db.base import BaseModel, generate_id


class Task(BaseModel):
    """
    Agency to-do item. An unassigned task is visible to every member of
    the agency; an assigned one only to admins and its assignee.
    """
    __tablename__ = "tasks"
    __table_args__ = (
        CheckConstraint("status IN ('TODO', 'IN_PROGRESS', 'DONE')", name="tasks_status_check"),
        CheckConstraint("priority IN ('LOW', 'MEDIUM', 'HIGH')", name="tasks_priority_check"),
    )

    id = Column(String(36), primary_key=True, default=generate_id, index=True)
    tenant_id = Column(String(100), ForeignKey("tenants.id"), nullable=False, index=True)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    status = Column(String(20), nullable=False, default="TODO", index=True)
    priority = Column(String(10), nullable=False, default="MEDIUM")
    due_date = Column(DateTime, nullable=True)

    # Snapshot of the assignee's name, like Sale.seller_name
    assigned_to = Column(String(36), nullable=True, index=True)
    assigned_to_name = Column(String(255), nullable=True)
    created_by = Column(String(36), nullable=True)
