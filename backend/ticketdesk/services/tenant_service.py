# backend/ticketdesk/services/tenant_service.py
"""
Tenant lifecycle: onboarding with a trial grant, settings, dashboard
figures and the operator-only delete.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from ticketdesk.core.audit_log import AuditAction, AuditLogger
from ticketdesk.core.config import settings
from ticketdesk.core.constants import DEFAULT_MODULES, TRIAL_PLAN, TenantStatus, VoucherStatus
from ticketdesk.core.exceptions import (
    AuthorizationError, ConflictError, NotFoundError, ValidationError,
    degrade_to_empty, surface_store_failures,
)
from ticketdesk.core.rbac import Action, Actor, authorize
from ticketdesk.db.models.tenant import Tenant
from ticketdesk.db.repositories.sale_repository import SaleRepository
from ticketdesk.db.repositories.task_repository import TaskRepository
from ticketdesk.db.repositories.tenant_repository import TenantRepository
from ticketdesk.db.repositories.user_repository import UserRepository
from ticketdesk.db.repositories.voucher_repository import VoucherRepository
from ticketdesk.services.credit_service import round_credits
from ticketdesk.services.subscription_service import validate_module_flags

logger = logging.getLogger(__name__)


def default_settings(name: str) -> Dict[str, Any]:
    return {
        "currency": settings.DEFAULT_CURRENCY,
        "receipt_header": f"*REÇU WIFI {name.upper()}*",
        "receipt_footer": "Merci de votre confiance !",
        "contact_phone": "",
        "contact_email": "",
        "modules": dict(DEFAULT_MODULES),
    }


@dataclass
class DashboardStats:
    revenue: int
    sold_count: int
    stock_count: int
    tenant_count: int
    user_count: int
    currency: str


class TenantService:
    """Service layer for agencies"""

    def __init__(self, session: AsyncSession, audit: AuditLogger):
        self.session = session
        self.audit = audit
        self.tenants = TenantRepository(session)
        self.users = UserRepository(session)
        self.vouchers = VoucherRepository(session)
        self.sales = SaleRepository(session)
        self.tasks = TaskRepository(session)

    @surface_store_failures
    async def create_tenant(self, actor: Actor, name: str) -> Tenant:
        """New agency on a trial license with the trial credit grant"""
        authorize(actor, Action.TENANT_MANAGE)
        name = (name or "").strip()
        if not name:
            raise ValidationError("Agency name is required")

        now = datetime.utcnow()
        tenant = await self.tenants.create({
            "name": name,
            "status": TenantStatus.ACTIVE.value,
            "plan_name": TRIAL_PLAN,
            "subscription_start": now,
            "subscription_end": now + timedelta(days=settings.TRIAL_DAYS),
            "credits_balance": round_credits(settings.TRIAL_CREDITS),
            "settings": default_settings(name),
        })
        await self.session.commit()

        logger.info(f"Tenant created: {tenant.id} ({name})", extra={"tenant_id": tenant.id, "user_id": actor.id})
        self.audit.record(actor, AuditAction.AGENCY_CREATE, f"Created agency {name}", tenant_id=tenant.id)
        return tenant

    @degrade_to_empty
    async def list_tenants(self, actor: Actor) -> List[Tenant]:
        """Every tenant for the operator, the actor's own tenant otherwise"""
        authorize(actor, Action.TENANT_VIEW)
        if actor.is_super_admin:
            return await self.tenants.list_all()
        tenant = await self.tenants.get(actor.tenant_id)
        return [tenant] if tenant else []

    async def get_tenant(self, actor: Actor, tenant_id: str) -> Tenant:
        authorize(actor, Action.TENANT_VIEW, tenant_id)
        tenant = await self.tenants.get(tenant_id)
        if not tenant:
            raise NotFoundError("Tenant", tenant_id)
        return tenant

    @surface_store_failures
    async def update_settings(
        self,
        actor: Actor,
        tenant_id: str,
        name: Optional[str] = None,
        settings_patch: Optional[Dict[str, Any]] = None,
    ) -> Tenant:
        """
        Merge `settings_patch` into the tenant settings. Module flags are
        operator-controlled and go through SubscriptionService.set_modules.
        """
        authorize(actor, Action.TENANT_SETTINGS, tenant_id)
        settings_patch = dict(settings_patch or {})
        if "modules" in settings_patch and not actor.is_super_admin:
            raise AuthorizationError("Only a super admin can change enabled modules")

        tenant = await self.tenants.get(tenant_id)
        if not tenant:
            raise NotFoundError("Tenant", tenant_id)

        values: Dict[str, Any] = {}
        if name is not None:
            name = name.strip()
            if not name:
                raise ValidationError("Agency name cannot be empty")
            values["name"] = name

        if settings_patch:
            merged = dict(tenant.settings or {})
            if "modules" in settings_patch:
                flags = validate_module_flags(settings_patch.pop("modules"))
                merged["modules"] = {**(merged.get("modules") or {}), **flags}
            merged.update(settings_patch)
            values["settings"] = merged

        if not values:
            return tenant

        tenant = await self.tenants.update(tenant_id, values)
        await self.session.commit()

        logger.info(f"Tenant settings updated: {tenant_id} ({', '.join(sorted(values))})")
        self.audit.record(actor, AuditAction.AGENCY_UPDATE, f"Updated {', '.join(sorted(values))}", tenant_id=tenant_id)
        return tenant

    @surface_store_failures
    async def delete_tenant(self, actor: Actor, tenant_id: str) -> None:
        """Remove a tenant with its sales, vouchers, tasks and members. Logs are kept."""
        authorize(actor, Action.TENANT_MANAGE, tenant_id)
        if tenant_id == actor.tenant_id:
            raise ConflictError("The operator's own tenant cannot be deleted")

        tenant = await self.tenants.get(tenant_id)
        if not tenant:
            raise NotFoundError("Tenant", tenant_id)

        tasks = await self.tasks.delete_by_tenant(tenant_id)
        sales = await self.sales.delete_by_tenant(tenant_id)
        vouchers = await self.vouchers.delete_by_tenant(tenant_id)
        users = await self.users.delete_by_tenant(tenant_id)
        await self.tenants.delete(tenant_id)
        await self.session.commit()

        logger.warning(
            f"Tenant deleted: {tenant_id} ({tenant.name}); sales={sales}, vouchers={vouchers}, users={users}, tasks={tasks}",
            extra={"tenant_id": tenant_id, "user_id": actor.id},
        )
        self.audit.record(actor, AuditAction.AGENCY_DELETE, f"Deleted agency {tenant.name}", tenant_id=tenant_id)

    async def get_stats(self, actor: Actor, tenant_id: Optional[str] = None) -> DashboardStats:
        """Dashboard figures. A super admin without tenant_id gets platform totals."""
        if tenant_id is None and not actor.is_super_admin:
            tenant_id = actor.tenant_id
        authorize(actor, Action.STATS_VIEW, tenant_id)

        currency = settings.DEFAULT_CURRENCY
        if tenant_id is not None:
            tenant = await self.tenants.get(tenant_id)
            if not tenant:
                raise NotFoundError("Tenant", tenant_id)
            currency = (tenant.settings or {}).get("currency") or currency

        revenue, sold_count = await self.sales.revenue(tenant_id)
        return DashboardStats(
            revenue=revenue,
            sold_count=sold_count,
            stock_count=await self.vouchers.count_by_status(VoucherStatus.UNSOLD, tenant_id),
            tenant_count=1 if tenant_id is not None else await self.tenants.count(),
            user_count=await self.users.count_members(tenant_id),
            currency=currency,
        )


async def get_tenant_service(session: AsyncSession, audit: AuditLogger) -> TenantService:
    """Dependency for FastAPI to inject tenant service."""
    return TenantService(session, audit)
