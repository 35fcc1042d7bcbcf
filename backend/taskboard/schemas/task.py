from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from taskboard.models.task import TaskPriority


class ChecklistItem(BaseModel):
    text: str = Field(max_length=500)
    completed: bool = False


class TaskCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    task_status_id: Optional[int] = None
    priority: TaskPriority = TaskPriority.medium
    assigned_to_user_id: Optional[int] = None
    due_date: Optional[datetime] = None
    checklist: List[ChecklistItem] = Field(default_factory=list)


class TaskUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    task_status_id: Optional[int] = None
    priority: Optional[TaskPriority] = None
    assigned_to_user_id: Optional[int] = None
    due_date: Optional[datetime] = None
    checklist: Optional[List[ChecklistItem]] = None


class TaskRead(BaseModel):
    id: int
    project_id: int
    task_status_id: int
    title: str
    description: Optional[str] = None
    priority: TaskPriority
    assigned_to_user_id: Optional[int] = None
    created_by_user_id: Optional[int] = None
    due_date: Optional[datetime] = None
    checklist: List[ChecklistItem] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
