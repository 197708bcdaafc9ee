# backend/ticketdesk/api/v1/stats.py
from fastapi import APIRouter, Depends
from typing import Optional

from ticketdesk.api.dependencies import require_module, tenant_service
from ticketdesk.core.constants import ModuleKey
from ticketdesk.core.rbac import Actor
from ticketdesk.schemas.stats import DashboardStats
from ticketdesk.services.tenant_service import TenantService

router = APIRouter()


@router.get("", response_model=DashboardStats)
async def get_stats(
    tenant_id: Optional[str] = None,
    actor: Actor = Depends(require_module(ModuleKey.DASHBOARD)),
    tenants: TenantService = Depends(tenant_service),
):
    """Dashboard figures; platform totals for the operator when no tenant is given"""
    return await tenants.get_stats(actor, tenant_id)
