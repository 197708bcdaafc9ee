# backend/ticketdesk/api/v1/logs.py
from fastapi import APIRouter, Depends, Query
from typing import List, Optional

from ticketdesk.api.dependencies import activity_log_service, require_module
from ticketdesk.core.constants import ModuleKey
from ticketdesk.core.rbac import Actor
from ticketdesk.schemas.activity_log import ActivityLog as ActivityLogSchema
from ticketdesk.services.activity_log_service import ActivityLogService

router = APIRouter()


@router.get("", response_model=List[ActivityLogSchema])
async def list_logs(
    tenant_id: Optional[str] = None,
    action: Optional[str] = None,
    limit: Optional[int] = Query(default=None, ge=1),
    actor: Actor = Depends(require_module(ModuleKey.TASKS)),
    logs: ActivityLogService = Depends(activity_log_service),
):
    """Activity trail, newest first"""
    return await logs.list_logs(actor, tenant_id, action=action, limit=limit)
