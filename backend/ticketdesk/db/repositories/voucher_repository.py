# backend/ticketdesk/db/repositories/voucher_repository.py
from datetime import datetime
from typing import Iterable, List, Optional, Set
from sqlalchemy import select, update, delete, func, and_
from sqlalchemy.ext.asyncio import AsyncSession

from ticketdesk.core.constants import VoucherStatus
from ticketdesk.db.models.voucher import Voucher
from ticketdesk.db.repositories.base import BaseRepository

# Keeps IN (...) lists under SQLite's bound-parameter limit
_LOOKUP_CHUNK = 500


class VoucherRepository(BaseRepository[Voucher]):
    """Repository for Voucher operations"""

    def __init__(self, session: AsyncSession):
        super().__init__(Voucher, session)

    async def get_with_tenant_check(self, voucher_id: str, tenant_id: str) -> Optional[Voucher]:
        """Get voucher with tenant verification"""
        result = await self.session.execute(
            select(Voucher)
            .where(and_(Voucher.id == voucher_id, Voucher.tenant_id == tenant_id))
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_by_tenant(
        self,
        tenant_id: str,
        status: Optional[VoucherStatus] = None,
        profile: Optional[str] = None,
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> List[Voucher]:
        """Get vouchers for a tenant, newest first"""
        query = (
            select(Voucher)
            .where(Voucher.tenant_id == tenant_id)
            .order_by(Voucher.created_at.desc(), Voucher.username)
            .execution_options(populate_existing=True)
        )
        if status is not None:
            query = query.where(Voucher.status == VoucherStatus(status).value)
        if profile is not None:
            query = query.where(Voucher.profile == profile)
        if skip:
            query = query.offset(skip)
        if limit is not None:
            query = query.limit(limit)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def claim_unsold(self, voucher_id: str, tenant_id: str, seller_id: str, sold_at: datetime) -> bool:
        """
        UNSOLD -> SOLD compare-and-swap. Exactly one concurrent caller sees
        True for a given voucher; the rest match zero rows.
        """
        result = await self.session.execute(
            update(Voucher)
            .where(Voucher.id == voucher_id)
            .where(Voucher.tenant_id == tenant_id)
            .where(Voucher.status == VoucherStatus.UNSOLD.value)
            .values(status=VoucherStatus.SOLD.value, sold_by=seller_id, sold_at=sold_at)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def release(self, voucher_id: str) -> bool:
        """Return a sold voucher to stock"""
        result = await self.session.execute(
            update(Voucher)
            .where(Voucher.id == voucher_id)
            .values(status=VoucherStatus.UNSOLD.value, sold_by=None, sold_at=None)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def existing_usernames(self, tenant_id: str, usernames: Iterable[str]) -> Set[str]:
        names = list(usernames)
        found: Set[str] = set()
        for start in range(0, len(names), _LOOKUP_CHUNK):
            chunk = names[start:start + _LOOKUP_CHUNK]
            result = await self.session.execute(
                select(Voucher.username)
                .where(Voucher.tenant_id == tenant_id)
                .where(Voucher.username.in_(chunk))
            )
            found.update(result.scalars().all())
        return found

    async def add_batch(self, vouchers: List[Voucher]) -> None:
        self.session.add_all(vouchers)
        await self.session.flush()

    async def update_unsold_price_by_profile(self, tenant_id: str, profile: str, price: int) -> int:
        result = await self.session.execute(
            update(Voucher)
            .where(Voucher.tenant_id == tenant_id)
            .where(Voucher.profile == profile)
            .where(Voucher.status == VoucherStatus.UNSOLD.value)
            .values(price=price)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def update_unsold_price(self, voucher_id: str, tenant_id: str, price: int) -> int:
        result = await self.session.execute(
            update(Voucher)
            .where(Voucher.id == voucher_id)
            .where(Voucher.tenant_id == tenant_id)
            .where(Voucher.status == VoucherStatus.UNSOLD.value)
            .values(price=price)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def delete_unsold(self, voucher_id: str, tenant_id: str) -> int:
        result = await self.session.execute(
            delete(Voucher)
            .where(Voucher.id == voucher_id)
            .where(Voucher.tenant_id == tenant_id)
            .where(Voucher.status == VoucherStatus.UNSOLD.value)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def delete_unsold_by_profile(self, tenant_id: str, profile: str) -> int:
        result = await self.session.execute(
            delete(Voucher)
            .where(Voucher.tenant_id == tenant_id)
            .where(Voucher.profile == profile)
            .where(Voucher.status == VoucherStatus.UNSOLD.value)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def delete_by_tenant(self, tenant_id: str) -> int:
        result = await self.session.execute(
            delete(Voucher)
            .where(Voucher.tenant_id == tenant_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def unsold_ids_for_profile(self, tenant_id: str, profile: str, limit: int) -> List[str]:
        """Oldest stock first"""
        result = await self.session.execute(
            select(Voucher.id)
            .where(Voucher.tenant_id == tenant_id)
            .where(Voucher.profile == profile)
            .where(Voucher.status == VoucherStatus.UNSOLD.value)
            .order_by(Voucher.created_at, Voucher.username)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def stock_by_profile(self, tenant_id: str):
        """(profile, unsold_count, price) rows, one per profile with stock"""
        result = await self.session.execute(
            select(Voucher.profile, func.count(Voucher.id), func.min(Voucher.price))
            .where(Voucher.tenant_id == tenant_id)
            .where(Voucher.status == VoucherStatus.UNSOLD.value)
            .group_by(Voucher.profile)
            .order_by(Voucher.profile)
        )
        return result.all()

    async def count_by_status(self, status: VoucherStatus, tenant_id: Optional[str] = None) -> int:
        query = select(func.count(Voucher.id)).where(Voucher.status == VoucherStatus(status).value)
        if tenant_id is not None:
            query = query.where(Voucher.tenant_id == tenant_id)
        result = await self.session.execute(query)
        return result.scalar() or 0

    async def count_by_tenant(self, tenant_id: str) -> int:
        result = await self.session.execute(
            select(func.count(Voucher.id)).where(Voucher.tenant_id == tenant_id)
        )
        return result.scalar() or 0
