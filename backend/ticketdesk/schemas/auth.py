# backend/ticketdesk/schemas/auth.py
from pydantic import BaseModel, EmailStr

from ticketdesk.schemas.user import User


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: User


class TokenPayload(BaseModel):
    sub: str
    tenant_id: str
    role: str
    exp: int
    type: str


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class PinVerifyRequest(BaseModel):
    pin: str


class PinVerifyResponse(BaseModel):
    valid: bool
