# backend/ticketdesk/services/subscription_service.py
"""
Subscription & Access Engine

License window arithmetic uses a fixed 30-day month. Tenant status and
license validity are independent: an active tenant can hold an expired
license, and an inactive tenant is locked out of every module whatever its
license says.
"""
import math
from datetime import datetime, timedelta
from typing import Dict, Optional
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from ticketdesk.core.audit_log import AuditAction, AuditLogger
from ticketdesk.core.constants import DAYS_PER_MONTH, ModuleKey, TenantStatus
from ticketdesk.core.exceptions import NotFoundError, ValidationError, surface_store_failures
from ticketdesk.core.rbac import Action, Actor, authorize
from ticketdesk.db.repositories.tenant_repository import TenantRepository

logger = logging.getLogger(__name__)


def compute_subscription_end(start: datetime, months: int) -> datetime:
    return start + timedelta(days=months * DAYS_PER_MONTH)


def is_license_active(tenant, now: Optional[datetime] = None) -> bool:
    if tenant.subscription_end is None:
        return False
    return (now or datetime.utcnow()) < tenant.subscription_end


def validate_module_flags(modules) -> Dict[str, bool]:
    """Known module keys mapped to real booleans; anything else is rejected"""
    if not isinstance(modules, dict):
        raise ValidationError("Module flags must be a mapping of module to true/false")
    flags = {}
    for key, enabled in modules.items():
        try:
            module = ModuleKey(key)
        except ValueError as exc:
            raise ValidationError(f"Unknown module: {key}") from exc
        if not isinstance(enabled, bool):
            raise ValidationError(f"Module flag for {module.value} must be true or false", module=module.value)
        flags[module.value] = enabled
    return flags


def remaining_days(tenant, now: Optional[datetime] = None) -> int:
    """Whole days left on the license, rounded up, never negative"""
    if tenant.subscription_end is None:
        return 0
    seconds = (tenant.subscription_end - (now or datetime.utcnow())).total_seconds()
    return max(0, math.ceil(seconds / 86400))


def can_access(actor: Actor, tenant, module: ModuleKey) -> bool:
    """
    Super admins always pass. Otherwise an inactive tenant denies everything,
    and a module is allowed unless its flag is explicitly False; a missing
    key is not a deny.
    """
    if actor.is_super_admin:
        return True
    if tenant is None or tenant.status != TenantStatus.ACTIVE.value:
        return False
    modules = (tenant.settings or {}).get("modules") or {}
    return modules.get(ModuleKey(module).value) is not False


class SubscriptionService:
    """Operator-side license, status and module management"""

    def __init__(self, session: AsyncSession, audit: AuditLogger):
        self.session = session
        self.audit = audit
        self.tenants = TenantRepository(session)

    async def _load(self, tenant_id: str):
        tenant = await self.tenants.get(tenant_id)
        if not tenant:
            raise NotFoundError("Tenant", tenant_id)
        return tenant

    @surface_store_failures
    async def activate(self, actor: Actor, tenant_id: str, plan_name: str, months: int):
        """Start a new license window now. The plan name is stored as a copy."""
        authorize(actor, Action.TENANT_MANAGE, tenant_id)
        plan_name = (plan_name or "").strip()
        if not plan_name:
            raise ValidationError("Plan name is required")
        if months <= 0:
            raise ValidationError("Subscription length must be at least one month", months=months)

        await self._load(tenant_id)
        start = datetime.utcnow()
        end = compute_subscription_end(start, months)
        tenant = await self.tenants.update(tenant_id, {
            "plan_name": plan_name,
            "subscription_start": start,
            "subscription_end": end,
        })
        await self.session.commit()

        logger.info(
            f"Subscription activated: tenant={tenant_id}, plan={plan_name}, months={months}, end={end.isoformat()}",
            extra={"tenant_id": tenant_id, "user_id": actor.id},
        )
        self.audit.record(
            actor, AuditAction.AGENCY_SUBSCRIPTION,
            f"Plan {plan_name} for {months} month(s), until {end.date().isoformat()}",
            tenant_id=tenant_id,
        )
        return tenant

    @surface_store_failures
    async def renew(self, actor: Actor, tenant_id: str, days: int):
        """Extend the license by `days` from whichever is later: now or the current end"""
        authorize(actor, Action.TENANT_MANAGE, tenant_id)
        if days <= 0:
            raise ValidationError("Renewal must add at least one day", days=days)

        tenant = await self._load(tenant_id)
        now = datetime.utcnow()
        base = tenant.subscription_end if tenant.subscription_end and tenant.subscription_end > now else now
        values = {"subscription_end": base + timedelta(days=days)}
        if tenant.subscription_start is None:
            values["subscription_start"] = now

        tenant = await self.tenants.update(tenant_id, values)
        await self.session.commit()

        logger.info(f"Subscription renewed: tenant={tenant_id}, days={days}")
        self.audit.record(actor, AuditAction.AGENCY_RENEW, f"+{days} day(s)", tenant_id=tenant_id)
        return tenant

    @surface_store_failures
    async def set_status(self, actor: Actor, tenant_id: str, status: TenantStatus):
        authorize(actor, Action.TENANT_MANAGE, tenant_id)
        try:
            status = TenantStatus(status)
        except ValueError as exc:
            raise ValidationError(f"Unknown tenant status: {status}") from exc

        await self._load(tenant_id)
        tenant = await self.tenants.update(tenant_id, {"status": status.value})
        await self.session.commit()

        logger.info(f"Tenant status changed: tenant={tenant_id}, status={status.value}")
        self.audit.record(actor, AuditAction.AGENCY_STATUS, f"Status set to {status.value}", tenant_id=tenant_id)
        return tenant

    @surface_store_failures
    async def set_modules(self, actor: Actor, tenant_id: str, modules: Dict[str, bool]):
        """Merge module flags into the tenant settings"""
        authorize(actor, Action.TENANT_MANAGE, tenant_id)
        flags = validate_module_flags(modules)

        tenant = await self._load(tenant_id)
        settings = dict(tenant.settings or {})
        settings["modules"] = {**(settings.get("modules") or {}), **flags}

        tenant = await self.tenants.update(tenant_id, {"settings": settings})
        await self.session.commit()

        disabled = sorted(k for k, v in settings["modules"].items() if v is False)
        logger.info(f"Modules updated: tenant={tenant_id}, disabled={disabled}")
        self.audit.record(
            actor, AuditAction.AGENCY_MODULES,
            "Disabled: " + (", ".join(disabled) if disabled else "none"),
            tenant_id=tenant_id,
        )
        return tenant


async def get_subscription_service(session: AsyncSession, audit: AuditLogger) -> SubscriptionService:
    """Dependency for FastAPI to inject subscription service."""
    return SubscriptionService(session, audit)
