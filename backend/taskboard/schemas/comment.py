from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from taskboard.schemas.user import UserPublic


class CommentCreate(BaseModel):
    content: str


class CommentUpdate(BaseModel):
    content: str


class CommentRead(BaseModel):
    id: int
    task_id: int
    author_id: int
    content: str
    created_at: datetime
    updated_at: Optional[datetime] = None
    author: Optional[UserPublic] = None

    class Config:
        from_attributes = True
