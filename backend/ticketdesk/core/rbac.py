# backend/ticketdesk/core/rbac.py
"""
Centralized Role-Based Access Control

Every engine entry point calls `authorize(actor, action, tenant_id)` before
touching the store. User management goes through `can_manage_user`.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Optional

from ticketdesk.core.constants import UserRole
from ticketdesk.core.exceptions import AuthorizationError


class Action(str, Enum):
    # Inventory
    VOUCHER_VIEW = "voucher:view"
    VOUCHER_SELL = "voucher:sell"
    VOUCHER_IMPORT = "voucher:import"
    VOUCHER_REPRICE = "voucher:reprice"
    VOUCHER_DELETE = "voucher:delete"

    # Sales
    SALE_VIEW = "sale:view"
    SALE_CANCEL = "sale:cancel"

    # Team
    USER_VIEW = "user:view"
    USER_MANAGE = "user:manage"

    # Tenant
    TENANT_VIEW = "tenant:view"
    TENANT_SETTINGS = "tenant:settings"
    TENANT_MANAGE = "tenant:manage"
    CREDIT_MANAGE = "credit:manage"
    STATS_VIEW = "stats:view"
    LOG_VIEW = "log:view"

    # Agency tasks
    TASK_VIEW = "task:view"
    TASK_UPDATE = "task:update"
    TASK_MANAGE = "task:manage"

    # Plan catalog
    PLAN_VIEW = "plan:view"
    PLAN_MANAGE = "plan:manage"


_SELLER_ACTIONS = frozenset({
    Action.VOUCHER_VIEW, Action.VOUCHER_SELL,
    Action.SALE_VIEW,
    Action.TENANT_VIEW, Action.STATS_VIEW,
    Action.PLAN_VIEW,
    Action.TASK_VIEW, Action.TASK_UPDATE,
})

ROLE_ACTIONS: Dict[UserRole, FrozenSet[Action]] = {
    UserRole.SUPER_ADMIN: frozenset(Action),
    UserRole.ADMIN: _SELLER_ACTIONS | {
        Action.VOUCHER_IMPORT, Action.VOUCHER_REPRICE, Action.VOUCHER_DELETE,
        Action.SALE_CANCEL,
        Action.USER_VIEW, Action.USER_MANAGE,
        Action.TENANT_SETTINGS, Action.LOG_VIEW,
        Action.TASK_MANAGE,
    },
    UserRole.SELLER: _SELLER_ACTIONS,
}


@dataclass(frozen=True)
class Actor:
    """Authenticated principal resolved from the bearer token for one request"""
    id: str
    role: UserRole
    tenant_id: str
    display_name: str = ""

    @classmethod
    def from_user(cls, user) -> "Actor":
        return cls(
            id=user.id,
            role=UserRole(user.role),
            tenant_id=user.tenant_id,
            display_name=user.display_name or user.email,
        )

    @property
    def is_super_admin(self) -> bool:
        return self.role == UserRole.SUPER_ADMIN


def has_permission(actor: Actor, action: Action) -> bool:
    """Check if the actor's role grants the action"""
    return action in ROLE_ACTIONS.get(actor.role, frozenset())


def authorize(actor: Actor, action: Action, tenant_id: Optional[str] = None) -> None:
    """
    Fail closed unless the role allows `action` and, for tenant-scoped roles,
    the target tenant is the actor's own.
    """
    if not has_permission(actor, action):
        raise AuthorizationError(f"Missing permission: {action.value}", action=action.value)

    if actor.is_super_admin or tenant_id is None:
        return

    if tenant_id != actor.tenant_id:
        raise AuthorizationError("Tenant scope violation", action=action.value)


def can_manage_user(actor: Actor, target) -> bool:
    """Who may edit role, reset password or delete whom"""
    if actor.id == target.id:
        return False

    if actor.role == UserRole.SELLER:
        return False

    target_role = UserRole(target.role)

    if actor.is_super_admin:
        return True

    if target_role == UserRole.SUPER_ADMIN:
        return False

    return (
        actor.role == UserRole.ADMIN
        and target_role == UserRole.SELLER
        and target.tenant_id == actor.tenant_id
    )


def ensure_can_manage_user(actor: Actor, target) -> None:
    authorize(actor, Action.USER_MANAGE)
    if not can_manage_user(actor, target):
        raise AuthorizationError("Not allowed to manage this account")


def ensure_can_assign_role(actor: Actor, role: UserRole) -> None:
    if role == UserRole.SUPER_ADMIN and not actor.is_super_admin:
        raise AuthorizationError("Only a super admin can grant the SUPER_ADMIN role")
