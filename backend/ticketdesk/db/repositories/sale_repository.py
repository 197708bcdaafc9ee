# backend/ticketdesk/db/repositories/sale_repository.py
from typing import List, Optional, Tuple
from sqlalchemy import select, delete, func
from sqlalchemy.ext.asyncio import AsyncSession

from ticketdesk.db.models.sale import Sale
from ticketdesk.db.repositories.base import BaseRepository


class SaleRepository(BaseRepository[Sale]):
    """Repository for Sale operations"""

    def __init__(self, session: AsyncSession):
        super().__init__(Sale, session)

    async def get_by_tenant(
        self,
        tenant_id: Optional[str] = None,
        seller_id: Optional[str] = None,
        skip: int = 0,
        limit: int = 500,
    ) -> List[Sale]:
        """Sales newest first; tenant_id None means every tenant"""
        query = select(Sale).order_by(Sale.sold_at.desc()).execution_options(populate_existing=True)
        if tenant_id is not None:
            query = query.where(Sale.tenant_id == tenant_id)
        if seller_id is not None:
            query = query.where(Sale.seller_id == seller_id)
        result = await self.session.execute(query.offset(skip).limit(limit))
        return list(result.scalars().all())

    async def count_for_voucher(self, voucher_id: str) -> int:
        result = await self.session.execute(
            select(func.count(Sale.id)).where(Sale.voucher_id == voucher_id)
        )
        return result.scalar() or 0

    async def revenue(self, tenant_id: Optional[str] = None) -> Tuple[int, int]:
        """(total amount, sale count)"""
        query = select(func.coalesce(func.sum(Sale.amount), 0), func.count(Sale.id))
        if tenant_id is not None:
            query = query.where(Sale.tenant_id == tenant_id)
        result = await self.session.execute(query)
        total, count = result.one()
        return int(total or 0), int(count or 0)

    async def delete_by_tenant(self, tenant_id: str) -> int:
        result = await self.session.execute(
            delete(Sale)
            .where(Sale.tenant_id == tenant_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount
