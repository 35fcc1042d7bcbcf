from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, DateTime, String
from sqlmodel import Enum as SQLEnum, Field, SQLModel

from taskboard.models.project import ProjectRole


class ProjectInvite(SQLModel, table=True):
    __tablename__ = "project_invites"

    id: Optional[int] = Field(default=None, primary_key=True)
    project_id: int = Field(foreign_key="projects.id", nullable=False, index=True)
    code: str = Field(sa_column=Column(String(64), nullable=False, unique=True, index=True))
    role: ProjectRole = Field(
        default=ProjectRole.member,
        sa_column=Column(SQLEnum(ProjectRole, name="project_role"), nullable=False),
    )
    max_uses: Optional[int] = Field(default=None, nullable=True)
    uses: int = Field(default=0, nullable=False)
    expires_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=True), nullable=True))
    created_by_user_id: Optional[int] = Field(default=None, foreign_key="users.id", nullable=True)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
