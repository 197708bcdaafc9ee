# backend/ticketdesk/api/v1/auth.py
from fastapi import APIRouter, Depends, HTTPException, status

from ticketdesk.api.dependencies import get_current_actor, get_current_user, user_service
from ticketdesk.core.rbac import Actor
from ticketdesk.core.security import create_access_token
from ticketdesk.db.models.user import User
from ticketdesk.schemas.auth import LoginRequest, PinVerifyRequest, PinVerifyResponse, Token
from ticketdesk.schemas.user import PinUpdate, User as UserSchema
from ticketdesk.services.user_service import UserService

router = APIRouter()


@router.post("/login", response_model=Token)
async def login(
    request: LoginRequest,
    users: UserService = Depends(user_service),
):
    """Sign in and receive a bearer token"""
    user = await users.sign_in(request.email, request.password)

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password"
        )

    access_token = create_access_token({
        "sub": user.id,
        "tenant_id": user.tenant_id,
        "role": user.role,
    })

    return Token(access_token=access_token, user=UserSchema.model_validate(user))


@router.get("/me", response_model=UserSchema)
async def me(current_user: User = Depends(get_current_user)):
    """Get current user information"""
    return current_user


@router.post("/verify-pin", response_model=PinVerifyResponse)
async def verify_pin(
    request: PinVerifyRequest,
    actor: Actor = Depends(get_current_actor),
    users: UserService = Depends(user_service),
):
    """Unlock the terminal with the signed-in user's PIN"""
    return PinVerifyResponse(valid=await users.verify_pin(actor.id, request.pin))


@router.put("/pin", status_code=status.HTTP_204_NO_CONTENT)
async def set_pin(
    request: PinUpdate,
    actor: Actor = Depends(get_current_actor),
    users: UserService = Depends(user_service),
):
    await users.set_pin(actor, request.pin)


@router.post("/logout")
async def logout(
    actor: Actor = Depends(get_current_actor),
    users: UserService = Depends(user_service),
):
    """Logout user (client should discard the token)"""
    users.sign_out(actor)
    return {"message": "Successfully logged out"}
