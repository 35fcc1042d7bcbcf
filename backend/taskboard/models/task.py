from datetime import datetime, timezone
from enum import Enum
from typing import Any, List, Optional

from sqlalchemy import JSON, Column, DateTime
from sqlmodel import Enum as SQLEnum, Field, SQLModel


class TaskPriority(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"


class Task(SQLModel, table=True):
    __tablename__ = "tasks"

    id: Optional[int] = Field(default=None, primary_key=True)
    project_id: int = Field(foreign_key="projects.id", nullable=False, index=True)
    task_status_id: int = Field(foreign_key="task_statuses.id", nullable=False, index=True)
    title: str = Field(nullable=False)
    description: Optional[str] = Field(default=None)
    priority: TaskPriority = Field(
        default=TaskPriority.medium,
        sa_column=Column(SQLEnum(TaskPriority, name="task_priority"), nullable=False),
    )
    assigned_to_user_id: Optional[int] = Field(default=None, foreign_key="users.id", nullable=True)
    created_by_user_id: Optional[int] = Field(default=None, foreign_key="users.id", nullable=True)
    due_date: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=True), nullable=True))
    checklist: List[dict[str, Any]] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
    )
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )


class TaskAttachment(SQLModel, table=True):
    __tablename__ = "task_attachments"

    id: Optional[int] = Field(default=None, primary_key=True)
    task_id: int = Field(foreign_key="tasks.id", nullable=False, index=True)
    filename: str = Field(nullable=False, max_length=255)
    original_name: str = Field(nullable=False, max_length=255)
    content_type: Optional[str] = Field(default=None, max_length=255)
    size: int = Field(default=0, nullable=False)
    url: str = Field(nullable=False, max_length=512)
    uploaded_by_user_id: Optional[int] = Field(default=None, foreign_key="users.id", nullable=True)
    uploaded_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
