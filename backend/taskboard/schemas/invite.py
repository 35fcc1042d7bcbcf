from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from taskboard.models.project import ProjectRole


class InviteCreate(BaseModel):
    role: ProjectRole = ProjectRole.member
    max_uses: Optional[int] = Field(default=None, ge=1)
    expires_at: Optional[datetime] = None


class InviteRead(BaseModel):
    id: int
    project_id: int
    code: str
    role: ProjectRole
    max_uses: Optional[int] = None
    uses: int
    expires_at: Optional[datetime] = None
    created_by_user_id: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True


class InviteStatus(BaseModel):
    code: str
    is_valid: bool
    reason: Optional[str] = None
    project_id: Optional[int] = None
    project_name: Optional[str] = None
    role: Optional[ProjectRole] = None
    expires_at: Optional[datetime] = None
    max_uses: Optional[int] = None
    uses: Optional[int] = None
