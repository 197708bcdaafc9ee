# backend/ticketdesk/services/plan_service.py
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from ticketdesk.core.audit_log import AuditAction, AuditLogger
from ticketdesk.core.exceptions import NotFoundError, ValidationError, degrade_to_empty, surface_store_failures
from ticketdesk.core.rbac import Action, Actor, authorize
from ticketdesk.db.models.plan import SubscriptionPlan
from ticketdesk.db.repositories.plan_repository import PlanRepository

logger = logging.getLogger(__name__)

_PLAN_FIELDS = ("name", "months", "price", "currency", "features", "is_popular", "order_index")


def _clean_plan(data: Dict[str, Any]) -> Dict[str, Any]:
    values = {k: data[k] for k in _PLAN_FIELDS if k in data and data[k] is not None}

    if "name" in values:
        values["name"] = str(values["name"]).strip()
        if not values["name"]:
            raise ValidationError("Plan name is required")
    if "months" in values and int(values["months"]) <= 0:
        raise ValidationError("Plan length must be at least one month")
    if "price" in values:
        try:
            values["price"] = Decimal(str(values["price"]))
        except InvalidOperation as exc:
            raise ValidationError(f"Invalid plan price: {values['price']!r}") from exc
        if values["price"] < 0:
            raise ValidationError("Plan price cannot be negative")
    if "features" in values:
        values["features"] = [str(f) for f in values["features"] if str(f).strip()]
    return values


class PlanService:
    """Operator-managed subscription plan catalog"""

    def __init__(self, session: AsyncSession, audit: AuditLogger):
        self.session = session
        self.audit = audit
        self.plans = PlanRepository(session)

    @degrade_to_empty
    async def list_plans(self, actor: Actor) -> List[SubscriptionPlan]:
        authorize(actor, Action.PLAN_VIEW)
        return await self.plans.list_ordered()

    @surface_store_failures
    async def upsert_plan(self, actor: Actor, data: Dict[str, Any], plan_id: Optional[str] = None) -> SubscriptionPlan:
        """Create a plan, or update `plan_id` with the fields given"""
        authorize(actor, Action.PLAN_MANAGE)
        values = _clean_plan(data)

        if plan_id is None:
            if "name" not in values or "months" not in values:
                raise ValidationError("A new plan needs a name and a length in months")
            plan = await self.plans.create(values)
        else:
            if not await self.plans.get(plan_id):
                raise NotFoundError("Plan", plan_id)
            plan = await self.plans.update(plan_id, values)
        await self.session.commit()

        logger.info(f"Plan saved: {plan.id} ({plan.name})")
        self.audit.record(actor, AuditAction.PLAN_UPSERT, f"Saved plan {plan.name}")
        return plan

    @surface_store_failures
    async def delete_plan(self, actor: Actor, plan_id: str) -> None:
        """Tenants keep the plan name they bought; nothing cascades"""
        authorize(actor, Action.PLAN_MANAGE)
        plan = await self.plans.get(plan_id)
        if not plan:
            raise NotFoundError("Plan", plan_id)

        await self.plans.delete(plan_id)
        await self.session.commit()
        self.audit.record(actor, AuditAction.PLAN_DELETE, f"Deleted plan {plan.name}")


async def get_plan_service(session: AsyncSession, audit: AuditLogger) -> PlanService:
    """Dependency for FastAPI to inject plan service."""
    return PlanService(session, audit)
