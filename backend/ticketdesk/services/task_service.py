# backend/ticketdesk/services/task_service.py
"""
Agency task board. Admins create, assign and delete tasks; sellers see the
unassigned ones plus their own and move them through TODO -> IN_PROGRESS -> DONE.
"""
from datetime import datetime
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from ticketdesk.core.audit_log import AuditAction, AuditLogger
from ticketdesk.core.constants import DEFAULT_TASK_TITLE, TaskPriority, TaskStatus, UserRole
from ticketdesk.core.exceptions import (
    AuthorizationError, NotFoundError, ValidationError, degrade_to_empty, surface_store_failures,
)
from ticketdesk.core.rbac import Action, Actor, authorize
from ticketdesk.db.models.task import Task
from ticketdesk.db.repositories.task_repository import TaskRepository
from ticketdesk.db.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)


def _parse_status(status) -> TaskStatus:
    try:
        return TaskStatus(status)
    except ValueError as exc:
        raise ValidationError(f"Unknown task status: {status}") from exc


def _parse_priority(priority) -> TaskPriority:
    if priority is None:
        return TaskPriority.MEDIUM
    try:
        return TaskPriority(priority)
    except ValueError as exc:
        raise ValidationError(f"Unknown task priority: {priority}") from exc


def can_see_task(actor: Actor, task) -> bool:
    if actor.role == UserRole.SELLER:
        return task.assigned_to is None or task.assigned_to == actor.id
    return True


class TaskService:
    """Service layer for the agency task board"""

    def __init__(self, session: AsyncSession, audit: AuditLogger):
        self.session = session
        self.audit = audit
        self.tasks = TaskRepository(session)
        self.users = UserRepository(session)

    async def _load(self, actor: Actor, task_id: str, action: Action) -> Task:
        task = await self.tasks.get(task_id)
        if not task:
            raise NotFoundError("Task", task_id)
        authorize(actor, action, task.tenant_id)
        if not can_see_task(actor, task):
            raise AuthorizationError("Task is assigned to someone else", action=action.value)
        return task

    @degrade_to_empty
    async def list_tasks(
        self,
        actor: Actor,
        tenant_id: Optional[str] = None,
        status: Optional[TaskStatus] = None,
    ) -> List[Task]:
        if tenant_id is None and not actor.is_super_admin:
            tenant_id = actor.tenant_id
        authorize(actor, Action.TASK_VIEW, tenant_id)

        visible_to = actor.id if actor.role == UserRole.SELLER else None
        return await self.tasks.get_by_tenant(
            tenant_id,
            visible_to=visible_to,
            status=_parse_status(status).value if status is not None else None,
        )

    @surface_store_failures
    async def add_task(
        self,
        actor: Actor,
        title: Optional[str] = None,
        description: str = "",
        priority: Optional[TaskPriority] = None,
        assigned_to: Optional[str] = None,
        due_date: Optional[datetime] = None,
        tenant_id: Optional[str] = None,
    ) -> Task:
        tenant_id = tenant_id or actor.tenant_id
        authorize(actor, Action.TASK_MANAGE, tenant_id)

        assignee_name = None
        if assigned_to:
            assignee = await self.users.get(assigned_to)
            if not assignee or assignee.tenant_id != tenant_id:
                raise ValidationError("Tasks can only be assigned to members of the agency", assigned_to=assigned_to)
            assignee_name = assignee.display_name or assignee.email

        task = await self.tasks.create({
            "tenant_id": tenant_id,
            "title": (title or "").strip() or DEFAULT_TASK_TITLE,
            "description": (description or "").strip(),
            "status": TaskStatus.TODO.value,
            "priority": _parse_priority(priority).value,
            "assigned_to": assigned_to or None,
            "assigned_to_name": assignee_name,
            "due_date": due_date,
            "created_by": actor.id,
        })
        await self.session.commit()

        logger.info(f"Task created: {task.id} ({task.title})", extra={"tenant_id": tenant_id, "user_id": actor.id})
        self.audit.record(actor, AuditAction.TASK_CREATE, f"Created task: {task.title}", tenant_id=tenant_id)
        return task

    @surface_store_failures
    async def update_status(self, actor: Actor, task_id: str, status: TaskStatus) -> Task:
        status = _parse_status(status)
        task = await self._load(actor, task_id, Action.TASK_UPDATE)

        task = await self.tasks.update(task_id, {"status": status.value})
        await self.session.commit()

        self.audit.record(
            actor, AuditAction.TASK_UPDATE,
            f'Task "{task.title}" moved to {status.value}',
            tenant_id=task.tenant_id,
        )
        return task

    @surface_store_failures
    async def delete_task(self, actor: Actor, task_id: str) -> None:
        task = await self._load(actor, task_id, Action.TASK_MANAGE)

        await self.tasks.delete(task_id)
        await self.session.commit()

        logger.info(f"Task deleted: {task_id}", extra={"tenant_id": task.tenant_id, "user_id": actor.id})
        self.audit.record(actor, AuditAction.TASK_DELETE, f"Deleted task: {task.title}", tenant_id=task.tenant_id)


async def get_task_service(session: AsyncSession, audit: AuditLogger) -> TaskService:
    """Dependency for FastAPI to inject task service."""
    return TaskService(session, audit)
