from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlalchemy import Boolean, Column, DateTime, UniqueConstraint
from sqlmodel import Enum as SQLEnum, Field, SQLModel


class ProjectRole(str, Enum):
    owner = "owner"
    admin = "admin"
    member = "member"
    viewer = "viewer"

    @property
    def is_privileged(self) -> bool:
        """Owners and admins bypass per-status permission checks."""
        return self in PRIVILEGED_ROLES


PRIVILEGED_ROLES = frozenset({ProjectRole.owner, ProjectRole.admin})


class Project(SQLModel, table=True):
    __tablename__ = "projects"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(nullable=False)
    description: Optional[str] = Field(default=None)
    owner_id: int = Field(foreign_key="users.id", nullable=False, index=True)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )


class ProjectMember(SQLModel, table=True):
    __tablename__ = "project_members"
    __table_args__ = (UniqueConstraint("project_id", "user_id", name="uq_project_members_project_user"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    project_id: int = Field(foreign_key="projects.id", nullable=False, index=True)
    user_id: int = Field(foreign_key="users.id", nullable=False, index=True)
    role: ProjectRole = Field(
        default=ProjectRole.member,
        sa_column=Column(SQLEnum(ProjectRole, name="project_role"), nullable=False),
    )
    joined_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )


class MemberPermission(SQLModel, table=True):
    """Grant of one constrained member on one status, or on every status when status_id is NULL."""

    __tablename__ = "member_permissions"
    # NULL status_ids never collide in a unique index; the default row is kept
    # unique by the member service instead.
    __table_args__ = (UniqueConstraint("member_id", "status_id", name="uq_member_permissions_member_status"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    member_id: int = Field(foreign_key="project_members.id", nullable=False, index=True)
    status_id: Optional[int] = Field(default=None, foreign_key="task_statuses.id", nullable=True)
    can_read: bool = Field(default=True, sa_column=Column(Boolean, nullable=False, server_default="true"))
    can_create: bool = Field(default=False, sa_column=Column(Boolean, nullable=False, server_default="false"))
    can_edit: bool = Field(default=False, sa_column=Column(Boolean, nullable=False, server_default="false"))
    can_delete: bool = Field(default=False, sa_column=Column(Boolean, nullable=False, server_default="false"))
