# backend/ticketdesk/core/audit_log.py
"""
Activity log sink.

Writes are fire-and-forget: `record` schedules a background task and returns
at once. Each task writes one ActivityLog row in its own session, retrying a
few times; the final failure is logged and dropped so it can never fail the
operation that produced it.
"""
import asyncio
import logging
from enum import Enum
from typing import Optional, Set

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from ticketdesk.core.config import settings

logger = logging.getLogger(__name__)


class AuditAction(str, Enum):
    LOGIN = "LOGIN"
    LOGOUT = "LOGOUT"

    SALE = "SALE"
    SALE_CANCEL = "SALE_CANCEL"

    TICKET_IMPORT = "TICKET_IMPORT"
    TICKET_UPDATE = "TICKET_UPDATE"
    TICKET_DELETE = "TICKET_DELETE"
    TICKET_PURGE = "TICKET_PURGE"

    AGENCY_CREATE = "AGENCY_CREATE"
    AGENCY_UPDATE = "AGENCY_UPDATE"
    AGENCY_DELETE = "AGENCY_DELETE"
    AGENCY_STATUS = "AGENCY_STATUS"
    AGENCY_RENEW = "AGENCY_RENEW"
    AGENCY_SUBSCRIPTION = "AGENCY_SUBSCRIPTION"
    AGENCY_MODULES = "AGENCY_MODULES"
    CREDIT_RECHARGE = "CREDIT_RECHARGE"

    USER_CREATE = "USER_CREATE"
    USER_UPDATE = "USER_UPDATE"
    USER_PASSWORD = "USER_PASSWORD"
    USER_DELETE = "USER_DELETE"

    PLAN_UPSERT = "PLAN_UPSERT"
    PLAN_DELETE = "PLAN_DELETE"

    TASK_CREATE = "TASK_CREATE"
    TASK_UPDATE = "TASK_UPDATE"
    TASK_DELETE = "TASK_DELETE"


class AuditLogger:
    """Append-only activity recorder bound to a session factory"""

    def __init__(
        self,
        session_factory: async_sessionmaker,
        max_attempts: Optional[int] = None,
        retry_delay: Optional[float] = None,
    ):
        self.session_factory = session_factory
        self.max_attempts = max_attempts or settings.AUDIT_MAX_ATTEMPTS
        self.retry_delay = settings.AUDIT_RETRY_DELAY_SECONDS if retry_delay is None else retry_delay
        self._pending: Set[asyncio.Task] = set()

    def record(
        self,
        actor,
        action: AuditAction,
        details: str = "",
        tenant_id: Optional[str] = None,
    ) -> asyncio.Task:
        """Schedule one log entry. Call only after the mutation has committed."""
        entry = {
            "user_id": actor.id if actor else None,
            "user_name": actor.display_name if actor else None,
            "tenant_id": tenant_id if tenant_id is not None else (actor.tenant_id if actor else None),
            "action": AuditAction(action).value,
            "details": details,
        }
        task = asyncio.create_task(self._write(entry))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _write(self, entry: dict) -> bool:
        from ticketdesk.db.models import ActivityLog

        for attempt in range(1, self.max_attempts + 1):
            try:
                async with self.session_factory() as session:
                    session.add(ActivityLog(**entry))
                    await session.commit()
                return True
            except (SQLAlchemyError, OSError) as exc:
                if attempt == self.max_attempts:
                    logger.warning(
                        f"Dropping audit entry {entry['action']} after {attempt} attempts: {exc}",
                        extra={"tenant_id": entry["tenant_id"], "user_id": entry["user_id"]},
                    )
                    return False
                await asyncio.sleep(self.retry_delay)
        return False

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for every scheduled write to finish"""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
