# backend/ticketdesk/db/repositories/plan_repository.py
from typing import List
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ticketdesk.db.models.plan import SubscriptionPlan
from ticketdesk.db.repositories.base import BaseRepository


class PlanRepository(BaseRepository[SubscriptionPlan]):
    """Repository for the plan catalog"""

    def __init__(self, session: AsyncSession):
        super().__init__(SubscriptionPlan, session)

    async def list_ordered(self) -> List[SubscriptionPlan]:
        result = await self.session.execute(
            select(SubscriptionPlan)
            .order_by(SubscriptionPlan.order_index, SubscriptionPlan.months)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())
