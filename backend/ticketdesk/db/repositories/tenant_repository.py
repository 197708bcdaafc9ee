# backend/ticketdesk/db/repositories/tenant_repository.py
from decimal import Decimal
from typing import List
from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from ticketdesk.core.constants import CREDIT_DECIMALS
from ticketdesk.db.models.tenant import Tenant
from ticketdesk.db.repositories.base import BaseRepository


class TenantRepository(BaseRepository[Tenant]):
    """Repository for Tenant operations"""

    def __init__(self, session: AsyncSession):
        super().__init__(Tenant, session)

    async def list_all(self) -> List[Tenant]:
        result = await self.session.execute(
            select(Tenant)
            .order_by(Tenant.created_at.desc())
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def count(self) -> int:
        result = await self.session.execute(select(func.count(Tenant.id)))
        return result.scalar() or 0

    async def deduct_credits(self, tenant_id: str, cost: Decimal) -> bool:
        """
        Check-and-deduct in one statement. Returns False when the balance
        no longer covers `cost` at write time.
        """
        result = await self.session.execute(
            update(Tenant)
            .where(Tenant.id == tenant_id)
            .where(Tenant.credits_balance >= cost)
            .values(credits_balance=func.round(Tenant.credits_balance - cost, CREDIT_DECIMALS))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def add_credits(self, tenant_id: str, amount: Decimal) -> bool:
        """Apply a signed adjustment; refused if it would go below zero"""
        result = await self.session.execute(
            update(Tenant)
            .where(Tenant.id == tenant_id)
            .where(Tenant.credits_balance + amount >= 0)
            .values(credits_balance=func.round(Tenant.credits_balance + amount, CREDIT_DECIMALS))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
