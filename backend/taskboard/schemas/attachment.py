from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class AttachmentRead(BaseModel):
    id: int
    task_id: int
    filename: str
    original_name: str
    content_type: Optional[str] = None
    size: int
    url: str
    uploaded_by_user_id: Optional[int] = None
    uploaded_at: datetime

    class Config:
        from_attributes = True
