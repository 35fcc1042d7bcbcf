from __future__ import annotations

import logging
import re
from typing import Iterable, Sequence

from sqlalchemy import func
from sqlmodel import delete, select
from sqlmodel.ext.asyncio.session import AsyncSession

from taskboard.core.errors import Conflict, NotFound, ServiceError, ValidationFailed
from taskboard.core.messages import StatusMessages
from taskboard.models.project import MemberPermission
from taskboard.models.task import Task
from taskboard.models.task_status import DEFAULT_STATUS_COLOR, DEFAULT_STATUS_ICON, TaskStatus
from taskboard.services.permissions import MembershipContext, can_manage_project, ensure_allowed

logger = logging.getLogger(__name__)

DEFAULT_TASK_STATUSES: Sequence[dict] = (
    {"slug": "todo", "title": "To Do", "color": "from-slate-700 to-slate-800", "icon": "📋", "position": 0},
    {"slug": "in_progress", "title": "In Progress", "color": "from-blue-700 to-blue-800", "icon": "⚡", "position": 1},
    {"slug": "done", "title": "Done", "color": "from-green-700 to-green-800", "icon": "✓", "position": 2},
)

_WHITESPACE = re.compile(r"\s+")
_SLUG_DISALLOWED = re.compile(r"[^a-z0-9_]")


class StatusNotFound(NotFound):
    kind = "status_not_found"
    default_message = StatusMessages.NOT_FOUND


class StatusConflict(Conflict):
    kind = "status_conflict"
    default_message = StatusMessages.SLUG_TAKEN


class LastStatus(ServiceError):
    kind = "last_status"
    default_message = StatusMessages.LAST_STATUS


class StatusInUse(ServiceError):
    kind = "status_in_use"
    default_message = StatusMessages.IN_USE


class StatusValidationError(ValidationFailed):
    kind = "invalid_status"


def slugify(value: str) -> str:
    return _SLUG_DISALLOWED.sub("", _WHITESPACE.sub("_", value.strip().lower()))


def _sorted(statuses: Iterable[TaskStatus]) -> list[TaskStatus]:
    return sorted(statuses, key=lambda status: (status.position, status.id or 0))


def _resequence(statuses: list[TaskStatus]) -> None:
    for index, item in enumerate(statuses):
        item.position = index


async def list_statuses(session: AsyncSession, project_id: int) -> list[TaskStatus]:
    stmt = (
        select(TaskStatus)
        .where(TaskStatus.project_id == project_id)
        .order_by(TaskStatus.position.asc(), TaskStatus.id.asc())
    )
    result = await session.exec(stmt)
    return list(result.all())


async def create_default_statuses(session: AsyncSession, project_id: int) -> list[TaskStatus]:
    created: list[TaskStatus] = []
    for payload in DEFAULT_TASK_STATUSES:
        status = TaskStatus(project_id=project_id, **payload)
        session.add(status)
        created.append(status)
    await session.flush()
    return _sorted(created)


async def get_first_status(session: AsyncSession, project_id: int) -> TaskStatus | None:
    statuses = await list_statuses(session, project_id)
    return statuses[0] if statuses else None


async def get_project_status(session: AsyncSession, status_id: int, project_id: int) -> TaskStatus | None:
    stmt = select(TaskStatus).where(TaskStatus.id == status_id, TaskStatus.project_id == project_id)
    result = await session.exec(stmt)
    return result.one_or_none()


async def _load_status(session: AsyncSession, project_id: int, status_id: int) -> TaskStatus:
    status = await get_project_status(session, status_id, project_id)
    if status is None:
        raise StatusNotFound()
    return status


async def _ensure_slug_free(session: AsyncSession, project_id: int, slug: str) -> None:
    result = await session.exec(
        select(TaskStatus.id).where(TaskStatus.project_id == project_id, TaskStatus.slug == slug)
    )
    if result.first() is not None:
        raise StatusConflict()


async def create_status(
    session: AsyncSession,
    ctx: MembershipContext,
    *,
    title: str,
    slug: str | None = None,
    color: str | None = None,
    icon: str | None = None,
) -> TaskStatus:
    ensure_allowed(can_manage_project(ctx))
    title = title.strip()
    slug = slugify(slug if slug else title)
    if not title or not slug:
        raise StatusValidationError(StatusMessages.SLUG_INVALID)
    await _ensure_slug_free(session, ctx.project_id, slug)

    result = await session.exec(
        select(func.max(TaskStatus.position)).where(TaskStatus.project_id == ctx.project_id)
    )
    highest = result.one_or_none()
    status = TaskStatus(
        project_id=ctx.project_id,
        slug=slug,
        title=title,
        color=color or DEFAULT_STATUS_COLOR,
        icon=icon or DEFAULT_STATUS_ICON,
        position=(highest if highest is not None else -1) + 1,
    )
    session.add(status)
    await session.flush()
    logger.info("User %s created status %s (%s) in project %s", ctx.user_id, status.id, slug, ctx.project_id)
    return status


async def update_status(
    session: AsyncSession,
    ctx: MembershipContext,
    *,
    status_id: int,
    changes: dict,
) -> TaskStatus:
    ensure_allowed(can_manage_project(ctx))
    status = await _load_status(session, ctx.project_id, status_id)

    if changes.get("title") is not None:
        title = changes["title"].strip()
        if not title:
            raise StatusValidationError(StatusMessages.SLUG_INVALID)
        status.title = title
    if changes.get("slug") is not None:
        slug = slugify(changes["slug"])
        if not slug:
            raise StatusValidationError(StatusMessages.SLUG_INVALID)
        if slug != status.slug:
            await _ensure_slug_free(session, ctx.project_id, slug)
            status.slug = slug
    if changes.get("color") is not None:
        status.color = changes["color"]
    if changes.get("icon") is not None:
        status.icon = changes["icon"]

    session.add(status)
    await session.flush()
    return status


async def reorder_statuses(
    session: AsyncSession,
    ctx: MembershipContext,
    *,
    ordered_ids: Sequence[int],
) -> list[TaskStatus]:
    ensure_allowed(can_manage_project(ctx))
    statuses = await list_statuses(session, ctx.project_id)
    by_id = {status.id: status for status in statuses}
    if len(ordered_ids) != len(by_id) or set(ordered_ids) != set(by_id):
        raise StatusValidationError(StatusMessages.REORDER_MISMATCH)

    ordered = [by_id[status_id] for status_id in ordered_ids]
    _resequence(ordered)
    for status in ordered:
        session.add(status)
    await session.flush()
    return ordered


async def delete_status(session: AsyncSession, ctx: MembershipContext, *, status_id: int) -> None:
    ensure_allowed(can_manage_project(ctx))
    status = await _load_status(session, ctx.project_id, status_id)

    count_result = await session.exec(
        select(func.count(TaskStatus.id)).where(TaskStatus.project_id == ctx.project_id)
    )
    if count_result.one() <= 1:
        raise LastStatus()

    tasks_result = await session.exec(select(func.count(Task.id)).where(Task.task_status_id == status.id))
    if tasks_result.one() > 0:
        raise StatusInUse()

    await session.exec(delete(MemberPermission).where(MemberPermission.status_id == status.id))
    await session.delete(status)
    await session.flush()

    remaining = await list_statuses(session, ctx.project_id)
    _resequence(remaining)
    for item in remaining:
        session.add(item)
    await session.flush()
    logger.info("User %s deleted status %s from project %s", ctx.user_id, status_id, ctx.project_id)
