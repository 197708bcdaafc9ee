# backend/ticketdesk/services/user_service.py
"""
Accounts: sign-in, PIN lock and team management.

Who may manage whom is decided in ticketdesk.core.rbac; this module only
applies the decision.
"""
import re
from datetime import datetime
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from ticketdesk.core.audit_log import AuditAction, AuditLogger
from ticketdesk.core.constants import PIN_LENGTH, UserRole
from ticketdesk.core.exceptions import (
    AuthorizationError, ConflictError, NotFoundError, ValidationError,
    degrade_to_empty, surface_store_failures,
)
from ticketdesk.core.rbac import (
    Action, Actor, authorize, ensure_can_assign_role, ensure_can_manage_user,
)
from ticketdesk.core.security import get_password_hash, verify_password
from ticketdesk.db.models.user import User
from ticketdesk.db.repositories.tenant_repository import TenantRepository
from ticketdesk.db.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
_PIN_PATTERN = re.compile(rf"\d{{{PIN_LENGTH}}}")


def is_valid_pin(pin: Optional[str]) -> bool:
    return bool(pin) and _PIN_PATTERN.fullmatch(pin) is not None


def _check_password(password: Optional[str]) -> str:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    return password


def _parse_role(role) -> UserRole:
    try:
        return UserRole(role)
    except ValueError as exc:
        raise ValidationError(f"Unknown role: {role}") from exc


def _ensure_admin_grants_seller(actor: Actor, role: UserRole) -> None:
    """Tenant admins manage sellers only"""
    if not actor.is_super_admin and role != UserRole.SELLER:
        raise AuthorizationError(f"Only a super admin can grant the {role.value} role")


class UserService:
    """Service layer for user accounts"""

    def __init__(self, session: AsyncSession, audit: AuditLogger):
        self.session = session
        self.audit = audit
        self.users = UserRepository(session)
        self.tenants = TenantRepository(session)

    async def sign_in(self, email: str, password: str) -> Optional[User]:
        """Profile on success, None on bad credentials or disabled account"""
        user = await self.users.get_by_email(email or "")
        if not user or not user.is_active or not verify_password(password or "", user.hashed_password):
            logger.warning(f"Failed sign-in for {email}")
            return None

        user.last_login = datetime.utcnow()
        await self.session.commit()

        self.audit.record(Actor.from_user(user), AuditAction.LOGIN, "Signed in")
        return user

    def sign_out(self, actor: Actor) -> None:
        self.audit.record(actor, AuditAction.LOGOUT, "Signed out")

    async def verify_pin(self, user_id: str, pin: str) -> bool:
        if not is_valid_pin(pin):
            return False
        user = await self.users.get(user_id)
        if not user:
            return False
        return verify_password(pin, user.hashed_pin)

    @surface_store_failures
    async def set_pin(self, actor: Actor, pin: str) -> None:
        """Users set their own lock-screen PIN"""
        if not is_valid_pin(pin):
            raise ValidationError(f"PIN must be exactly {PIN_LENGTH} digits")
        await self.users.update(actor.id, {"hashed_pin": get_password_hash(pin)})
        await self.session.commit()

    @degrade_to_empty
    async def list_users(self, actor: Actor, tenant_id: Optional[str] = None) -> List[User]:
        """Operators see everyone; tenant admins see their tenant without operator accounts"""
        if tenant_id is None and not actor.is_super_admin:
            tenant_id = actor.tenant_id
        authorize(actor, Action.USER_VIEW, tenant_id)
        return await self.users.list_users(tenant_id, include_super_admins=actor.is_super_admin)

    @surface_store_failures
    async def add_user(
        self,
        actor: Actor,
        email: str,
        password: str,
        role: UserRole,
        tenant_id: str,
        display_name: Optional[str] = None,
        pin: Optional[str] = None,
    ) -> User:
        authorize(actor, Action.USER_MANAGE, tenant_id)
        role = _parse_role(role)
        ensure_can_assign_role(actor, role)
        _ensure_admin_grants_seller(actor, role)

        email = (email or "").strip().lower()
        if not email:
            raise ValidationError("Email is required")
        _check_password(password)
        if pin is not None and not is_valid_pin(pin):
            raise ValidationError(f"PIN must be exactly {PIN_LENGTH} digits")

        if not await self.tenants.get(tenant_id):
            raise NotFoundError("Tenant", tenant_id)
        if await self.users.get_by_email(email):
            raise ConflictError("Email already registered", email=email)

        user = await self.users.create({
            "email": email,
            "hashed_password": get_password_hash(password),
            "hashed_pin": get_password_hash(pin) if pin else None,
            "role": role.value,
            "tenant_id": tenant_id,
            "display_name": (display_name or "").strip() or email.split("@")[0],
        })
        await self.session.commit()

        logger.info(f"User created: {user.id} ({role.value})", extra={"tenant_id": tenant_id, "user_id": actor.id})
        self.audit.record(actor, AuditAction.USER_CREATE, f"Added {email} as {role.value}", tenant_id=tenant_id)
        return user

    async def _load_managed(self, actor: Actor, user_id: str) -> User:
        target = await self.users.get(user_id)
        if not target:
            raise NotFoundError("User", user_id)
        ensure_can_manage_user(actor, target)
        return target

    @surface_store_failures
    async def update_role(self, actor: Actor, user_id: str, role: UserRole) -> User:
        if user_id == actor.id:
            raise AuthorizationError("You cannot change your own role")
        role = _parse_role(role)
        target = await self._load_managed(actor, user_id)
        ensure_can_assign_role(actor, role)
        _ensure_admin_grants_seller(actor, role)

        user = await self.users.update(user_id, {"role": role.value})
        await self.session.commit()

        self.audit.record(
            actor, AuditAction.USER_UPDATE,
            f"{target.email}: {target.role} -> {role.value}",
            tenant_id=target.tenant_id,
        )
        return user

    @surface_store_failures
    async def update_password(self, actor: Actor, user_id: str, new_password: str) -> None:
        if user_id == actor.id:
            raise AuthorizationError("You cannot reset your own password here")
        target = await self._load_managed(actor, user_id)
        _check_password(new_password)

        await self.users.update(user_id, {"hashed_password": get_password_hash(new_password)})
        await self.session.commit()

        self.audit.record(actor, AuditAction.USER_PASSWORD, f"Password reset for {target.email}", tenant_id=target.tenant_id)

    @surface_store_failures
    async def delete_user(self, actor: Actor, user_id: str) -> None:
        if user_id == actor.id:
            raise AuthorizationError("You cannot delete your own account")
        target = await self._load_managed(actor, user_id)

        await self.users.delete(user_id)
        await self.session.commit()

        logger.info(f"User deleted: {user_id}", extra={"tenant_id": target.tenant_id, "user_id": actor.id})
        self.audit.record(actor, AuditAction.USER_DELETE, f"Deleted {target.email}", tenant_id=target.tenant_id)


async def get_user_service(session: AsyncSession, audit: AuditLogger) -> UserService:
    """Dependency for FastAPI to inject user service."""
    return UserService(session, audit)
