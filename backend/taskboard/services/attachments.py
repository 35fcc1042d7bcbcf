from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable
from uuid import uuid4

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from taskboard.core.config import settings
from taskboard.core.errors import NotFound, ValidationFailed
from taskboard.core.messages import AttachmentMessages
from taskboard.models.task import Task, TaskAttachment
from taskboard.services.permissions import Action, MembershipContext, check_permission, ensure_allowed

logger = logging.getLogger(__name__)

UPLOADS_URL_PREFIX = "/uploads/"
ALLOWED_EXTENSIONS = frozenset({".jpeg", ".jpg", ".png", ".gif", ".pdf", ".doc", ".docx", ".txt", ".zip"})


class AttachmentNotFound(NotFound):
    kind = "attachment_not_found"
    default_message = AttachmentMessages.NOT_FOUND


class AttachmentValidationError(ValidationFailed):
    kind = "invalid_attachment"


def _uploads_dir() -> Path:
    path = Path(settings.UPLOADS_DIR)
    path.mkdir(parents=True, exist_ok=True)
    return path


def remove_stored_file(filename: str) -> None:
    target = _uploads_dir() / Path(filename).name
    try:
        if target.exists() and target.is_file():
            target.unlink()
    except OSError as exc:
        logger.warning("Failed to delete upload %s: %s", target, exc)


def remove_stored_files(filenames: Iterable[str]) -> None:
    """Remove uploads whose rows were deleted; callers run this after commit."""
    for filename in filenames:
        remove_stored_file(filename)


async def list_attachments(session: AsyncSession, ctx: MembershipContext, task: Task) -> list[TaskAttachment]:
    ensure_allowed(check_permission(ctx, Action.read, task.task_status_id))
    result = await session.exec(
        select(TaskAttachment)
        .where(TaskAttachment.task_id == task.id)
        .order_by(TaskAttachment.uploaded_at.asc(), TaskAttachment.id.asc())
    )
    return list(result.all())


async def upload_attachment(
    session: AsyncSession,
    ctx: MembershipContext,
    task: Task,
    *,
    original_name: str | None,
    content_type: str | None,
    contents: bytes,
) -> TaskAttachment:
    ensure_allowed(check_permission(ctx, Action.edit, task.task_status_id))
    if not contents:
        raise AttachmentValidationError(AttachmentMessages.FILE_EMPTY)
    if len(contents) > settings.MAX_UPLOAD_BYTES:
        raise AttachmentValidationError(AttachmentMessages.FILE_TOO_LARGE)

    original_name = Path(original_name or "").name or "upload"
    extension = Path(original_name).suffix.lower()
    if extension not in ALLOWED_EXTENSIONS:
        raise AttachmentValidationError(AttachmentMessages.INVALID_TYPE)

    filename = f"{uuid4().hex}{extension}"
    (_uploads_dir() / filename).write_bytes(contents)

    attachment = TaskAttachment(
        task_id=task.id,
        filename=filename,
        original_name=original_name,
        content_type=content_type,
        size=len(contents),
        url=f"{UPLOADS_URL_PREFIX}{filename}",
        uploaded_by_user_id=ctx.user_id,
    )
    session.add(attachment)
    try:
        await session.flush()
    except Exception:
        remove_stored_file(filename)
        raise
    logger.info("User %s attached %s to task %s", ctx.user_id, filename, task.id)
    return attachment


async def delete_attachment(
    session: AsyncSession,
    ctx: MembershipContext,
    task: Task,
    *,
    attachment_id: int,
) -> str:
    ensure_allowed(check_permission(ctx, Action.edit, task.task_status_id))
    result = await session.exec(
        select(TaskAttachment).where(TaskAttachment.id == attachment_id, TaskAttachment.task_id == task.id)
    )
    attachment = result.one_or_none()
    if attachment is None:
        raise AttachmentNotFound()

    filename = attachment.filename
    await session.delete(attachment)
    await session.flush()
    return filename
