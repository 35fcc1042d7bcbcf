from typing import List, Optional

from pydantic import BaseModel, Field


class TaskStatusCreate(BaseModel):
    title: str = Field(min_length=1, max_length=100)
    slug: Optional[str] = Field(default=None, max_length=100)
    color: Optional[str] = None
    icon: Optional[str] = None


class TaskStatusUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=100)
    slug: Optional[str] = Field(default=None, max_length=100)
    color: Optional[str] = None
    icon: Optional[str] = None


class TaskStatusReorderRequest(BaseModel):
    status_ids: List[int] = Field(min_length=1)


class StatusGrantRead(BaseModel):
    can_read: bool
    can_create: bool
    can_edit: bool
    can_delete: bool


class TaskStatusRead(BaseModel):
    id: int
    project_id: int
    slug: str
    title: str
    color: str
    icon: str
    position: int

    class Config:
        from_attributes = True


class TaskStatusWithGrants(TaskStatusRead):
    permissions: StatusGrantRead
