# backend/ticketdesk/api/v1/users.py
from fastapi import APIRouter, Depends, status
from typing import List, Optional

from ticketdesk.api.dependencies import require_module, user_service
from ticketdesk.core.constants import ModuleKey
from ticketdesk.core.rbac import Actor
from ticketdesk.schemas.user import PasswordUpdate, User as UserSchema, UserCreate, UserRoleUpdate
from ticketdesk.services.user_service import UserService

router = APIRouter()


@router.get("", response_model=List[UserSchema])
async def list_users(
    tenant_id: Optional[str] = None,
    actor: Actor = Depends(require_module(ModuleKey.TEAM)),
    users: UserService = Depends(user_service),
):
    return await users.list_users(actor, tenant_id)


@router.post("", response_model=UserSchema, status_code=status.HTTP_201_CREATED)
async def add_user(
    request: UserCreate,
    actor: Actor = Depends(require_module(ModuleKey.TEAM)),
    users: UserService = Depends(user_service),
):
    return await users.add_user(
        actor,
        email=request.email,
        password=request.password,
        role=request.role,
        tenant_id=request.tenant_id or actor.tenant_id,
        display_name=request.display_name,
        pin=request.pin,
    )


@router.put("/{user_id}/role", response_model=UserSchema)
async def update_role(
    user_id: str,
    request: UserRoleUpdate,
    actor: Actor = Depends(require_module(ModuleKey.TEAM)),
    users: UserService = Depends(user_service),
):
    return await users.update_role(actor, user_id, request.role)


@router.put("/{user_id}/password", status_code=status.HTTP_204_NO_CONTENT)
async def update_password(
    user_id: str,
    request: PasswordUpdate,
    actor: Actor = Depends(require_module(ModuleKey.TEAM)),
    users: UserService = Depends(user_service),
):
    await users.update_password(actor, user_id, request.password)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: str,
    actor: Actor = Depends(require_module(ModuleKey.TEAM)),
    users: UserService = Depends(user_service),
):
    await users.delete_user(actor, user_id)
