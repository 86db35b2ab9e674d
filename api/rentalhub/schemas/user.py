"""User schemas."""
from pydantic import BaseModel, ConfigDict, EmailStr
from typing import Optional


class UserBase(BaseModel):
    email: EmailStr
    full_name: str


class UserCreate(UserBase):
    password: str
    role: str = "USER"


class UserResponse(UserBase):
    user_id: int
    role: str
    is_active: bool = True
    tenant_id: Optional[int] = None
    room_id: Optional[int] = None
    capabilities: dict = {}

    model_config = ConfigDict(from_attributes=True)


class UserBrief(BaseModel):
    user_id: int
    full_name: str
    email: EmailStr
    role: str

    model_config = ConfigDict(from_attributes=True)


class Token(BaseModel):
    access_token: str
    token_type: str


class LoginRequest(BaseModel):
    email: EmailStr
    password: str
