# backend/ticketdesk/services/activity_log_service.py
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession

from ticketdesk.core.config import settings
from ticketdesk.core.exceptions import degrade_to_empty
from ticketdesk.core.rbac import Action, Actor, authorize
from ticketdesk.db.models.activity_log import ActivityLog
from ticketdesk.db.repositories.activity_log_repository import ActivityLogRepository


class ActivityLogService:
    """Read access to the audit trail"""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.logs = ActivityLogRepository(session)

    @degrade_to_empty
    async def list_logs(
        self,
        actor: Actor,
        tenant_id: Optional[str] = None,
        action: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[ActivityLog]:
        """Newest first, capped. Super admins may read across tenants."""
        if tenant_id is None and not actor.is_super_admin:
            tenant_id = actor.tenant_id
        authorize(actor, Action.LOG_VIEW, tenant_id)

        cap = settings.ACTIVITY_LOG_LIMIT
        limit = min(limit or cap, cap)
        return await self.logs.get_recent(tenant_id, action=action, limit=limit)


async def get_activity_log_service(session: AsyncSession) -> ActivityLogService:
    """Dependency for FastAPI to inject activity log service."""
    return ActivityLogService(session)
