from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from taskboard.models.project import ProjectRole
from taskboard.schemas.user import UserPublic


class MemberAdd(BaseModel):
    user_id: int
    role: ProjectRole = ProjectRole.member


class MemberCreateUser(BaseModel):
    email: EmailStr
    name: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=6, max_length=72)
    role: ProjectRole = ProjectRole.member


class MemberRoleUpdate(BaseModel):
    role: ProjectRole


class MemberRead(BaseModel):
    id: int
    project_id: int
    user_id: int
    role: ProjectRole
    joined_at: datetime
    user: Optional[UserPublic] = None

    class Config:
        from_attributes = True


class MemberPermissionIn(BaseModel):
    """One grant row; omit ``status_id`` for the project-wide default."""
    status_id: Optional[int] = None
    can_read: bool = True
    can_create: bool = False
    can_edit: bool = False
    can_delete: bool = False


class MemberPermissionsUpdate(BaseModel):
    permissions: list[MemberPermissionIn] = Field(default_factory=list)


class MemberPermissionRead(BaseModel):
    id: int
    member_id: int
    status_id: Optional[int] = None
    can_read: bool
    can_create: bool
    can_edit: bool
    can_delete: bool

    class Config:
        from_attributes = True
