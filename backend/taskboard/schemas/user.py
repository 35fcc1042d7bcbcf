from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class UserCreate(BaseModel):
    email: EmailStr
    name: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=6, max_length=72)


class UserAdminUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    is_global_admin: Optional[bool] = None
    password: Optional[str] = Field(default=None, min_length=6, max_length=72)


class UserPublic(BaseModel):
    """Public user information exposed to other users"""
    id: int
    email: EmailStr
    name: str

    class Config:
        from_attributes = True


class UserRead(UserPublic):
    is_global_admin: bool
    created_at: datetime
