from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, DateTime, UniqueConstraint
from sqlmodel import Field, SQLModel

DEFAULT_STATUS_COLOR = "from-slate-700 to-slate-800"
DEFAULT_STATUS_ICON = "📌"


class TaskStatus(SQLModel, table=True):
    __tablename__ = "task_statuses"
    __table_args__ = (UniqueConstraint("project_id", "slug", name="uq_task_statuses_project_slug"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    project_id: int = Field(foreign_key="projects.id", nullable=False, index=True)
    slug: str = Field(nullable=False, max_length=100)
    title: str = Field(nullable=False, max_length=100)
    color: str = Field(default=DEFAULT_STATUS_COLOR, nullable=False)
    icon: str = Field(default=DEFAULT_STATUS_ICON, nullable=False)
    position: int = Field(default=0, nullable=False)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
