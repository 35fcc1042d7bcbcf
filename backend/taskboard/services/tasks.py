"""Task lifecycle gated by per-status permissions."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Iterable

from sqlmodel import delete, select
from sqlmodel.ext.asyncio.session import AsyncSession

from taskboard.core.errors import AccessDenied, NotFound, ValidationFailed
from taskboard.core.messages import TaskMessages
from taskboard.models.comment import Comment
from taskboard.models.task import Task, TaskAttachment, TaskPriority
from taskboard.services import membership as membership_service
from taskboard.services import task_statuses as task_statuses_service
from taskboard.services.permissions import (
    Action,
    MembershipContext,
    check_permission,
    check_transition,
    ensure_allowed,
    filter_readable,
)

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = ("title", "description", "priority", "due_date")


class TaskNotFound(NotFound):
    kind = "task_not_found"
    default_message = TaskMessages.NOT_FOUND


class TaskAccessDenied(AccessDenied):
    """Carries the ``Decision`` that refused the operation."""


class TaskValidationError(ValidationFailed):
    kind = "invalid_task"


def normalize_checklist(items: Iterable[Any] | None) -> list[dict[str, Any]]:
    normalized: list[dict[str, Any]] = []
    for item in items or []:
        data = item if isinstance(item, dict) else item.model_dump()
        text = str(data.get("text") or "").strip()
        if not text:
            continue
        normalized.append({"text": text, "completed": bool(data.get("completed", False))})
    return normalized


async def get_task(session: AsyncSession, task_id: int) -> Task:
    task = await session.get(Task, task_id)
    if task is None:
        raise TaskNotFound()
    return task


async def list_tasks(
    session: AsyncSession,
    ctx: MembershipContext,
    *,
    status_id: int | None = None,
) -> list[Task]:
    stmt = select(Task).where(Task.project_id == ctx.project_id)
    if status_id is not None:
        stmt = stmt.where(Task.task_status_id == status_id)
    stmt = stmt.order_by(Task.created_at.desc(), Task.id.desc())
    result = await session.exec(stmt)
    return filter_readable(ctx, result.all())


def ensure_can_read(ctx: MembershipContext, task: Task) -> None:
    ensure_allowed(check_permission(ctx, Action.read, task.task_status_id), TaskAccessDenied)


async def _resolve_status_id(session: AsyncSession, project_id: int, status_id: int | None) -> int:
    if status_id is None:
        first = await task_statuses_service.get_first_status(session, project_id)
        if first is None:
            raise TaskValidationError(TaskMessages.NO_STATUSES)
        return first.id
    status = await task_statuses_service.get_project_status(session, status_id, project_id)
    if status is None:
        raise TaskValidationError(TaskMessages.INVALID_STATUS)
    return status.id


async def _ensure_assignee(session: AsyncSession, project_id: int, user_id: int | None) -> None:
    if user_id is None:
        return
    member = await membership_service.get_membership(session, project_id=project_id, user_id=user_id)
    if member is None:
        raise TaskValidationError(TaskMessages.ASSIGNEE_NOT_MEMBER)


async def create_task(
    session: AsyncSession,
    ctx: MembershipContext,
    *,
    title: str,
    description: str | None = None,
    task_status_id: int | None = None,
    priority: TaskPriority = TaskPriority.medium,
    assigned_to_user_id: int | None = None,
    due_date: datetime | None = None,
    checklist: Iterable[Any] | None = None,
) -> Task:
    status_id = await _resolve_status_id(session, ctx.project_id, task_status_id)
    ensure_allowed(check_permission(ctx, Action.create, status_id), TaskAccessDenied)

    title = (title or "").strip()
    if not title:
        raise TaskValidationError(TaskMessages.TITLE_REQUIRED)
    await _ensure_assignee(session, ctx.project_id, assigned_to_user_id)

    task = Task(
        project_id=ctx.project_id,
        task_status_id=status_id,
        title=title,
        description=description,
        priority=priority,
        assigned_to_user_id=assigned_to_user_id,
        created_by_user_id=ctx.user_id,
        due_date=due_date,
        checklist=normalize_checklist(checklist),
    )
    session.add(task)
    await session.flush()
    return task


async def update_task(
    session: AsyncSession,
    ctx: MembershipContext,
    task: Task,
    *,
    changes: dict[str, Any],
) -> Task:
    ensure_allowed(check_permission(ctx, Action.edit, task.task_status_id), TaskAccessDenied)

    target_status_id = changes.get("task_status_id")
    if target_status_id is not None and target_status_id != task.task_status_id:
        target_status_id = await _resolve_status_id(session, task.project_id, target_status_id)
        ensure_allowed(check_transition(ctx, task.task_status_id, target_status_id), TaskAccessDenied)
        logger.debug("Task %s moving from status %s to %s", task.id, task.task_status_id, target_status_id)
        task.task_status_id = target_status_id

    if "title" in changes:
        title = (changes["title"] or "").strip()
        if not title:
            raise TaskValidationError(TaskMessages.TITLE_REQUIRED)
        changes = {**changes, "title": title}
    if "assigned_to_user_id" in changes:
        await _ensure_assignee(session, task.project_id, changes["assigned_to_user_id"])
        task.assigned_to_user_id = changes["assigned_to_user_id"]
    if "checklist" in changes:
        task.checklist = normalize_checklist(changes["checklist"])

    for field in _UPDATABLE_FIELDS:
        if field in changes and not (field in ("title", "priority") and changes[field] is None):
            setattr(task, field, changes[field])

    task.updated_at = datetime.now(timezone.utc)
    session.add(task)
    await session.flush()
    return task


async def delete_task(session: AsyncSession, ctx: MembershipContext, task: Task) -> list[str]:
    """Delete the task and its rows; returns stored upload names for the caller to remove after commit."""
    ensure_allowed(check_permission(ctx, Action.delete, task.task_status_id), TaskAccessDenied)

    attachments_result = await session.exec(select(TaskAttachment).where(TaskAttachment.task_id == task.id))
    stored_files = [attachment.filename for attachment in attachments_result.all()]

    await session.exec(delete(Comment).where(Comment.task_id == task.id))
    await session.exec(delete(TaskAttachment).where(TaskAttachment.task_id == task.id))
    await session.delete(task)
    await session.flush()
    logger.info("User %s deleted task %s", ctx.user_id, task.id)
    return stored_files
