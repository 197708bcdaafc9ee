# backend/ticketdesk/db/repositories/activity_log_repository.py
from typing import List, Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ticketdesk.db.models.activity_log import ActivityLog
from ticketdesk.db.repositories.base import BaseRepository


class ActivityLogRepository(BaseRepository[ActivityLog]):
    """Read side of the activity log; writes go through AuditLogger"""

    def __init__(self, session: AsyncSession):
        super().__init__(ActivityLog, session)

    async def get_recent(
        self,
        tenant_id: Optional[str] = None,
        action: Optional[str] = None,
        limit: int = 200,
    ) -> List[ActivityLog]:
        query = select(ActivityLog).order_by(ActivityLog.created_at.desc())
        if tenant_id is not None:
            query = query.where(ActivityLog.tenant_id == tenant_id)
        if action is not None:
            query = query.where(ActivityLog.action == action)
        result = await self.session.execute(query.limit(limit))
        return list(result.scalars().all())
