# backend/ticketdesk/db/repositories/user_repository.py
from typing import List, Optional
from sqlalchemy import select, delete, func
from sqlalchemy.ext.asyncio import AsyncSession

from ticketdesk.core.constants import UserRole
from ticketdesk.db.models.user import User
from ticketdesk.db.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Repository for User operations"""

    def __init__(self, session: AsyncSession):
        super().__init__(User, session)

    async def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email"""
        result = await self.session.execute(
            select(User)
            .where(func.lower(User.email) == email.strip().lower())
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def list_users(
        self,
        tenant_id: Optional[str] = None,
        include_super_admins: bool = True,
    ) -> List[User]:
        query = select(User).order_by(User.created_at).execution_options(populate_existing=True)
        if tenant_id is not None:
            query = query.where(User.tenant_id == tenant_id)
        if not include_super_admins:
            query = query.where(User.role != UserRole.SUPER_ADMIN.value)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def count_members(self, tenant_id: Optional[str] = None) -> int:
        """Count non-operator accounts"""
        query = select(func.count(User.id)).where(User.role != UserRole.SUPER_ADMIN.value)
        if tenant_id is not None:
            query = query.where(User.tenant_id == tenant_id)
        result = await self.session.execute(query)
        return result.scalar() or 0

    async def delete_by_tenant(self, tenant_id: str) -> int:
        result = await self.session.execute(
            delete(User)
            .where(User.tenant_id == tenant_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount
