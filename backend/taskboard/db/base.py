"""Import all models for Alembic or metadata creation."""

from taskboard.models.comment import Comment
from taskboard.models.invite import ProjectInvite
from taskboard.models.project import MemberPermission, Project, ProjectMember
from taskboard.models.task import Task, TaskAttachment
from taskboard.models.task_status import TaskStatus
from taskboard.models.user import User

__all__ = [
    "User",
    "Project",
    "ProjectMember",
    "MemberPermission",
    "TaskStatus",
    "Task",
    "TaskAttachment",
    "Comment",
    "ProjectInvite",
]
