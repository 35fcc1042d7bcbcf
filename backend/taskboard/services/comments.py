from __future__ import annotations

from datetime import datetime, timezone

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from taskboard.core.errors import AccessDenied, NotFound, ValidationFailed
from taskboard.core.messages import CommentMessages
from taskboard.models.comment import Comment
from taskboard.models.task import Task
from taskboard.models.user import User
from taskboard.services.permissions import Action, MembershipContext, check_permission, ensure_allowed


class CommentNotFoundError(NotFound):
    kind = "comment_not_found"
    default_message = CommentMessages.NOT_FOUND


class CommentPermissionError(AccessDenied):
    """Raised when someone other than the author edits or deletes a comment."""

    kind = "comment_author_only"
    default_message = CommentMessages.AUTHOR_ONLY


class CommentValidationError(ValidationFailed):
    kind = "invalid_comment"
    default_message = CommentMessages.EMPTY


def _clean_content(content: str | None) -> str:
    cleaned = (content or "").strip()
    if not cleaned:
        raise CommentValidationError()
    return cleaned


async def list_comments(
    session: AsyncSession,
    ctx: MembershipContext,
    task: Task,
) -> list[tuple[Comment, User]]:
    ensure_allowed(check_permission(ctx, Action.read, task.task_status_id))
    stmt = (
        select(Comment, User)
        .join(User, User.id == Comment.author_id)
        .where(Comment.task_id == task.id)
        .order_by(Comment.created_at.asc(), Comment.id.asc())
    )
    result = await session.exec(stmt)
    return list(result.all())


async def create_comment(
    session: AsyncSession,
    ctx: MembershipContext,
    task: Task,
    *,
    content: str,
) -> Comment:
    ensure_allowed(check_permission(ctx, Action.read, task.task_status_id))
    comment = Comment(task_id=task.id, author_id=ctx.user_id, content=_clean_content(content))
    session.add(comment)
    await session.flush()
    return comment


async def _get_own_comment(session: AsyncSession, *, comment_id: int, user: User) -> Comment:
    comment = await session.get(Comment, comment_id)
    if comment is None:
        raise CommentNotFoundError()
    if comment.author_id != user.id:
        raise CommentPermissionError()
    return comment


async def update_comment(session: AsyncSession, *, comment_id: int, user: User, content: str) -> Comment:
    comment = await _get_own_comment(session, comment_id=comment_id, user=user)
    comment.content = _clean_content(content)
    comment.updated_at = datetime.now(timezone.utc)
    session.add(comment)
    await session.flush()
    return comment


async def delete_comment(session: AsyncSession, *, comment_id: int, user: User) -> None:
    comment = await _get_own_comment(session, comment_id=comment_id, user=user)
    await session.delete(comment)
    await session.flush()
