from __future__ import annotations

import logging
from typing import List

from sqlalchemy import func
from sqlmodel import delete, select, update
from sqlmodel.ext.asyncio.session import AsyncSession

from taskboard.core.errors import Conflict, ServiceError
from taskboard.core.messages import AuthMessages
from taskboard.core.security import get_password_hash, verify_password
from taskboard.models.comment import Comment
from taskboard.models.invite import ProjectInvite
from taskboard.models.project import MemberPermission, Project, ProjectMember
from taskboard.models.task import Task, TaskAttachment
from taskboard.models.user import User
from taskboard.services.members import UserNotFound

logger = logging.getLogger(__name__)


class EmailTaken(Conflict):
    kind = "email_taken"
    default_message = AuthMessages.EMAIL_TAKEN


class CannotDeleteSelf(ServiceError):
    kind = "cannot_delete_self"
    default_message = AuthMessages.CANNOT_DELETE_SELF


class DeletionBlocker(ServiceError):
    """Raised when account deletion would orphan projects."""

    kind = "deletion_blocked"
    default_message = AuthMessages.USER_OWNS_PROJECTS

    def __init__(self, blockers: List[str]):
        self.blockers = blockers
        super().__init__(f"{AuthMessages.USER_OWNS_PROJECTS}: {', '.join(blockers)}")


def normalize_email(email: str) -> str:
    return email.strip().lower()


async def get_user_by_email(session: AsyncSession, email: str) -> User | None:
    result = await session.exec(select(User).where(User.email == normalize_email(email)))
    return result.one_or_none()


async def get_user(session: AsyncSession, user_id: int) -> User:
    user = await session.get(User, user_id)
    if user is None:
        raise UserNotFound()
    return user


async def list_users(session: AsyncSession) -> list[User]:
    result = await session.exec(select(User).order_by(User.name.asc(), User.id.asc()))
    return list(result.all())


async def register_user(session: AsyncSession, *, email: str, name: str, password: str) -> User:
    """Create an account; the very first account becomes a global admin."""
    if await get_user_by_email(session, email) is not None:
        raise EmailTaken()

    count_result = await session.exec(select(func.count(User.id)))
    is_first_user = count_result.one() == 0

    user = User(
        email=normalize_email(email),
        name=name.strip(),
        hashed_password=get_password_hash(password),
        is_global_admin=is_first_user,
    )
    session.add(user)
    await session.flush()
    if is_first_user:
        logger.info("First account %s registered as global admin", user.id)
    return user


async def authenticate(session: AsyncSession, *, email: str, password: str) -> User | None:
    user = await get_user_by_email(session, email)
    if user is None or not verify_password(password, user.hashed_password):
        return None
    return user


async def update_user_as_admin(
    session: AsyncSession,
    user: User,
    *,
    changes: dict,
) -> User:
    if changes.get("name") is not None:
        user.name = changes["name"].strip()
    if changes.get("is_global_admin") is not None:
        user.is_global_admin = bool(changes["is_global_admin"])
    if changes.get("password"):
        user.hashed_password = get_password_hash(changes["password"])
    session.add(user)
    await session.flush()
    return user


async def delete_user(session: AsyncSession, *, actor: User, user_id: int) -> None:
    if actor.id == user_id:
        raise CannotDeleteSelf()
    user = await get_user(session, user_id)

    owned_result = await session.exec(select(Project.name).where(Project.owner_id == user.id))
    owned = list(owned_result.all())
    if owned:
        raise DeletionBlocker(owned)

    member_ids = select(ProjectMember.id).where(ProjectMember.user_id == user.id)
    await session.exec(delete(MemberPermission).where(MemberPermission.member_id.in_(member_ids)))
    await session.exec(delete(ProjectMember).where(ProjectMember.user_id == user.id))
    await session.exec(delete(Comment).where(Comment.author_id == user.id))
    await session.exec(update(Task).where(Task.assigned_to_user_id == user.id).values(assigned_to_user_id=None))
    await session.exec(update(Task).where(Task.created_by_user_id == user.id).values(created_by_user_id=None))
    await session.exec(
        update(TaskAttachment).where(TaskAttachment.uploaded_by_user_id == user.id).values(uploaded_by_user_id=None)
    )
    await session.exec(
        update(ProjectInvite).where(ProjectInvite.created_by_user_id == user.id).values(created_by_user_id=None)
    )
    await session.delete(user)
    await session.flush()
    logger.info("User %s deleted account %s", actor.id, user_id)
