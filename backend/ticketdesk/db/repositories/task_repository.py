# backend/ticketdesk/db/repositories/task_repository.py
from typing import List, Optional
from sqlalchemy import select, delete, or_
from sqlalchemy.ext.asyncio import AsyncSession

from ticketdesk.db.models.task import Task
from ticketdesk.db.repositories.base import BaseRepository


class TaskRepository(BaseRepository[Task]):
    """Repository for Task operations"""

    def __init__(self, session: AsyncSession):
        super().__init__(Task, session)

    async def get_by_tenant(
        self,
        tenant_id: Optional[str] = None,
        visible_to: Optional[str] = None,
        status: Optional[str] = None,
    ) -> List[Task]:
        """
        Newest first. `visible_to` limits the list to tasks that are
        unassigned or assigned to that user.
        """
        query = select(Task).order_by(Task.created_at.desc()).execution_options(populate_existing=True)
        if tenant_id is not None:
            query = query.where(Task.tenant_id == tenant_id)
        if visible_to is not None:
            query = query.where(or_(Task.assigned_to.is_(None), Task.assigned_to == visible_to))
        if status is not None:
            query = query.where(Task.status == status)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def delete_by_tenant(self, tenant_id: str) -> int:
        result = await self.session.execute(
            delete(Task)
            .where(Task.tenant_id == tenant_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount
