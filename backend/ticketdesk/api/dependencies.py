# backend/ticketdesk/api/dependencies.py
from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from ticketdesk.core.audit_log import AuditLogger
from ticketdesk.core.constants import ModuleKey
from ticketdesk.core.rbac import Actor
from ticketdesk.core.security import decode_token
from ticketdesk.db.database import get_db
from ticketdesk.db.models.user import User
from ticketdesk.db.repositories.tenant_repository import TenantRepository
from ticketdesk.db.repositories.user_repository import UserRepository
from ticketdesk.services.activity_log_service import ActivityLogService, get_activity_log_service
from ticketdesk.services.credit_service import CreditService, get_credit_service
from ticketdesk.services.inventory_service import InventoryService, get_inventory_service
from ticketdesk.services.plan_service import PlanService, get_plan_service
from ticketdesk.services.subscription_service import SubscriptionService, can_access, get_subscription_service
from ticketdesk.services.task_service import TaskService, get_task_service
from ticketdesk.services.tenant_service import TenantService, get_tenant_service
from ticketdesk.services.user_service import UserService, get_user_service

security = HTTPBearer(auto_error=False)


def get_audit_logger(request: Request) -> AuditLogger:
    """Audit sink created in the application lifespan"""
    return request.app.state.audit_logger


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> User:
    """Get current authenticated user"""
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required"
        )

    try:
        payload = decode_token(credentials.credentials)
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials"
        )

    user_id = payload.get("sub")
    if not user_id or payload.get("type") != "access":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token"
        )

    user = await UserRepository(db).get(user_id)
    if not user or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or inactive"
        )

    return user


async def get_current_actor(current_user: User = Depends(get_current_user)) -> Actor:
    """Role and tenant come from the stored account, not from token claims"""
    return Actor.from_user(current_user)


def require_module(module: ModuleKey):
    """Dependency gating a route on the tenant's enabled modules"""
    async def module_checker(
        actor: Actor = Depends(get_current_actor),
        db: AsyncSession = Depends(get_db),
    ) -> Actor:
        if actor.is_super_admin:
            return actor

        tenant = await TenantRepository(db).get(actor.tenant_id)
        if not can_access(actor, tenant, module):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Module '{module.value}' is not available for this agency"
            )
        return actor

    return module_checker


async def inventory_service(
    db: AsyncSession = Depends(get_db),
    audit: AuditLogger = Depends(get_audit_logger),
) -> InventoryService:
    return await get_inventory_service(db, audit)


async def credit_service(
    db: AsyncSession = Depends(get_db),
    audit: AuditLogger = Depends(get_audit_logger),
) -> CreditService:
    return await get_credit_service(db, audit)


async def subscription_service(
    db: AsyncSession = Depends(get_db),
    audit: AuditLogger = Depends(get_audit_logger),
) -> SubscriptionService:
    return await get_subscription_service(db, audit)


async def tenant_service(
    db: AsyncSession = Depends(get_db),
    audit: AuditLogger = Depends(get_audit_logger),
) -> TenantService:
    return await get_tenant_service(db, audit)


async def user_service(
    db: AsyncSession = Depends(get_db),
    audit: AuditLogger = Depends(get_audit_logger),
) -> UserService:
    return await get_user_service(db, audit)


async def plan_service(
    db: AsyncSession = Depends(get_db),
    audit: AuditLogger = Depends(get_audit_logger),
) -> PlanService:
    return await get_plan_service(db, audit)


async def activity_log_service(db: AsyncSession = Depends(get_db)) -> ActivityLogService:
    return await get_activity_log_service(db)


async def task_service(
    db: AsyncSession = Depends(get_db),
    audit: AuditLogger = Depends(get_audit_logger),
) -> TaskService:
    return await get_task_service(db, audit)
