# backend/ticketdesk/schemas/user.py
from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import datetime

from ticketdesk.core.constants import UserRole


class UserBase(BaseModel):
    email: str
    display_name: Optional[str] = None


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    role: UserRole = UserRole.SELLER
    tenant_id: Optional[str] = None
    display_name: Optional[str] = None
    pin: Optional[str] = None


class UserRoleUpdate(BaseModel):
    role: UserRole


class PasswordUpdate(BaseModel):
    password: str = Field(..., min_length=6)


class PinUpdate(BaseModel):
    pin: str


class UserInDB(UserBase):
    id: str
    tenant_id: str
    role: str
    is_active: bool
    last_login: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class User(UserInDB):
    pass
