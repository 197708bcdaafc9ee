# backend/ticketdesk/services/credit_service.py
"""
Credit Metering Engine

One credit buys 20 voucher imports. Balances carry four decimal places and
every read-modify-write of a balance is rounded in the store statement
itself, never only at display time.
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from ticketdesk.core.audit_log import AuditAction, AuditLogger
from ticketdesk.core.constants import CREDIT_PRECISION, UNLIMITED_PLAN, VOUCHERS_PER_CREDIT
from ticketdesk.core.exceptions import NotFoundError, ValidationError, surface_store_failures
from ticketdesk.core.rbac import Action, Actor, authorize
from ticketdesk.db.database import end_unchanged
from ticketdesk.db.repositories.tenant_repository import TenantRepository

logger = logging.getLogger(__name__)


def round_credits(value: Any) -> Decimal:
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise ValidationError(f"Invalid credit amount: {value!r}") from exc
    if not amount.is_finite():
        raise ValidationError(f"Invalid credit amount: {value!r}")
    return amount.quantize(CREDIT_PRECISION, rounding=ROUND_HALF_UP)


def compute_import_cost(batch_size: int) -> Decimal:
    """cost = round(batch_size / 20, 4)"""
    if batch_size < 0:
        raise ValidationError("Batch size cannot be negative")
    return round_credits(Decimal(batch_size) / VOUCHERS_PER_CREDIT)


def is_unlimited(tenant) -> bool:
    return tenant.plan_name == UNLIMITED_PLAN


def can_afford(tenant, cost: Decimal) -> bool:
    if is_unlimited(tenant):
        return True
    return round_credits(tenant.credits_balance or 0) >= cost


class CreditService:
    """Balance checks, deductions and operator recharges"""

    def __init__(self, session: AsyncSession, audit: AuditLogger):
        self.session = session
        self.audit = audit
        self.tenants = TenantRepository(session)

    async def deduct(self, tenant, cost: Decimal) -> bool:
        """
        Charge `cost` inside the caller's transaction.

        Unlimited plans and zero cost never touch the balance. Returns False
        when the guarded update found the balance short; the caller must
        roll back.
        """
        if cost <= 0 or is_unlimited(tenant):
            return True
        return await self.tenants.deduct_credits(tenant.id, cost)

    @surface_store_failures
    async def recharge(self, actor: Actor, tenant_id: str, amount: Any, note: str = "") -> Decimal:
        """
        Operator top-up. Negative amounts are corrections and are accepted
        as long as the balance stays non-negative.
        """
        authorize(actor, Action.CREDIT_MANAGE, tenant_id)
        amount = round_credits(amount)

        tenant = await self.tenants.get(tenant_id)
        if not tenant:
            raise NotFoundError("Tenant", tenant_id)

        applied = await self.tenants.add_credits(tenant_id, amount)
        if not applied:
            await end_unchanged(self.session)
            tenant = await self.tenants.get(tenant_id)
            raise ValidationError(
                "Adjustment would make the balance negative",
                amount=str(amount),
                available=str(round_credits(tenant.credits_balance or 0)),
            )

        await self.session.commit()
        tenant = await self.tenants.get(tenant_id)
        balance = round_credits(tenant.credits_balance)

        logger.info(
            f"Credits adjusted: tenant={tenant_id}, amount={amount}, balance={balance}",
            extra={"tenant_id": tenant_id, "user_id": actor.id},
        )
        details = f"{amount} credits ({note})" if note else f"{amount} credits"
        self.audit.record(actor, AuditAction.CREDIT_RECHARGE, details, tenant_id=tenant_id)
        return balance


async def get_credit_service(session: AsyncSession, audit: AuditLogger) -> CreditService:
    """Dependency for FastAPI to inject credit service."""
    return CreditService(session, audit)
