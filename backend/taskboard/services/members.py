from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from sqlmodel import delete, select
from sqlmodel.ext.asyncio.session import AsyncSession

from taskboard.core.errors import AccessDenied, Conflict, NotFound, ValidationFailed
from taskboard.core.messages import AuthMessages, MemberMessages
from taskboard.core.security import get_password_hash
from taskboard.models.project import MemberPermission, ProjectMember, ProjectRole
from taskboard.models.task_status import TaskStatus
from taskboard.models.user import User
from taskboard.services import membership as membership_service
from taskboard.services.permissions import (
    Grant,
    MembershipContext,
    can_manage_project,
    default_grant_for_role,
    ensure_allowed,
)

logger = logging.getLogger(__name__)


class InvalidRoleAssignment(AccessDenied):
    kind = "invalid_role_assignment"
    default_message = MemberMessages.OWNER_ROLE_LOCKED


class MemberNotFound(NotFound):
    kind = "member_not_found"
    default_message = MemberMessages.NOT_FOUND


class AlreadyMember(Conflict):
    kind = "already_member"
    default_message = MemberMessages.ALREADY_MEMBER


class UserNotFound(NotFound):
    kind = "user_not_found"
    default_message = AuthMessages.USER_NOT_FOUND


class PermissionValidationError(ValidationFailed):
    kind = "invalid_permissions"


async def list_members(session: AsyncSession, project_id: int) -> list[tuple[ProjectMember, User]]:
    stmt = (
        select(ProjectMember, User)
        .join(User, User.id == ProjectMember.user_id)
        .where(ProjectMember.project_id == project_id)
        .order_by(ProjectMember.joined_at.asc(), ProjectMember.id.asc())
    )
    result = await session.exec(stmt)
    return list(result.all())


async def get_member(session: AsyncSession, project_id: int, member_id: int) -> ProjectMember:
    stmt = select(ProjectMember).where(
        ProjectMember.project_id == project_id,
        ProjectMember.id == member_id,
    )
    result = await session.exec(stmt)
    member = result.one_or_none()
    if member is None:
        raise MemberNotFound()
    return member


def _ensure_assignable(role: ProjectRole) -> ProjectRole:
    role = ProjectRole(role)
    if role == ProjectRole.owner:
        raise InvalidRoleAssignment(MemberMessages.OWNER_ROLE_LOCKED)
    return role


def _ensure_can_act_on(ctx: MembershipContext, target: ProjectMember) -> None:
    if target.role == ProjectRole.owner:
        raise InvalidRoleAssignment(MemberMessages.OWNER_ROLE_LOCKED)
    if target.role == ProjectRole.admin and not ctx.acts_as_owner:
        raise InvalidRoleAssignment(MemberMessages.ADMIN_REQUIRES_OWNER)


async def _replace_grants(
    session: AsyncSession,
    member: ProjectMember,
    grants: Iterable[tuple[int | None, Grant]] = (),
) -> None:
    await session.exec(delete(MemberPermission).where(MemberPermission.member_id == member.id))
    for status_id, grant in grants:
        session.add(MemberPermission(member_id=member.id, status_id=status_id, **grant.as_dict()))
    await session.flush()


async def apply_role_defaults(session: AsyncSession, member: ProjectMember) -> None:
    """Reset a member's grant rows to what its role starts with."""
    grant = default_grant_for_role(member.role)
    await _replace_grants(session, member, [(None, grant)] if grant else [])


async def add_member_unchecked(
    session: AsyncSession,
    *,
    project_id: int,
    user_id: int,
    role: ProjectRole,
) -> ProjectMember:
    existing = await membership_service.get_membership(session, project_id=project_id, user_id=user_id)
    if existing is not None:
        raise AlreadyMember()
    member = ProjectMember(project_id=project_id, user_id=user_id, role=role)
    session.add(member)
    await session.flush()
    await apply_role_defaults(session, member)
    return member


async def add_member(
    session: AsyncSession,
    ctx: MembershipContext,
    *,
    user_id: int,
    role: ProjectRole = ProjectRole.member,
) -> ProjectMember:
    ensure_allowed(can_manage_project(ctx))
    role = _ensure_assignable(role)
    user = await session.get(User, user_id)
    if user is None:
        raise UserNotFound()
    member = await add_member_unchecked(session, project_id=ctx.project_id, user_id=user_id, role=role)
    logger.info("User %s added user %s to project %s as %s", ctx.user_id, user_id, ctx.project_id, role.value)
    return member


async def create_user_and_add_member(
    session: AsyncSession,
    ctx: MembershipContext,
    *,
    email: str,
    name: str,
    password: str,
    role: ProjectRole = ProjectRole.member,
) -> tuple[ProjectMember, User]:
    ensure_allowed(can_manage_project(ctx))
    role = _ensure_assignable(role)
    email = email.strip().lower()
    result = await session.exec(select(User).where(User.email == email))
    if result.one_or_none() is not None:
        raise Conflict(AuthMessages.EMAIL_TAKEN)
    user = User(email=email, name=name.strip(), hashed_password=get_password_hash(password))
    session.add(user)
    await session.flush()
    member = await add_member_unchecked(session, project_id=ctx.project_id, user_id=user.id, role=role)
    logger.info("User %s created user %s inside project %s", ctx.user_id, user.id, ctx.project_id)
    return member, user


async def update_member_role(
    session: AsyncSession,
    ctx: MembershipContext,
    *,
    member_id: int,
    role: ProjectRole,
) -> ProjectMember:
    ensure_allowed(can_manage_project(ctx))
    target = await get_member(session, ctx.project_id, member_id)
    _ensure_can_act_on(ctx, target)
    role = _ensure_assignable(role)
    if target.role == role:
        return target

    previous = target.role
    target.role = role
    session.add(target)
    await session.flush()
    await apply_role_defaults(session, target)
    logger.info(
        "User %s changed member %s in project %s from %s to %s",
        ctx.user_id,
        target.id,
        ctx.project_id,
        previous.value,
        role.value,
    )
    return target


async def remove_member(session: AsyncSession, ctx: MembershipContext, *, member_id: int) -> None:
    ensure_allowed(can_manage_project(ctx))
    target = await get_member(session, ctx.project_id, member_id)
    if target.role == ProjectRole.owner:
        raise InvalidRoleAssignment(MemberMessages.CANNOT_REMOVE_OWNER)
    _ensure_can_act_on(ctx, target)

    await session.exec(delete(MemberPermission).where(MemberPermission.member_id == target.id))
    await session.delete(target)
    await session.flush()
    logger.info("User %s removed member %s from project %s", ctx.user_id, member_id, ctx.project_id)


async def list_member_permissions(session: AsyncSession, member: ProjectMember) -> list[MemberPermission]:
    if member.role.is_privileged:
        return []
    rows = await membership_service.list_permission_rows(session, member.id)
    # Project-wide default first, then by status id.
    return sorted(rows, key=lambda row: (row.status_id is not None, row.status_id or 0))


async def set_member_permissions(
    session: AsyncSession,
    ctx: MembershipContext,
    *,
    member_id: int,
    grants: Sequence[tuple[int | None, Grant]],
) -> list[MemberPermission]:
    ensure_allowed(can_manage_project(ctx))
    target = await get_member(session, ctx.project_id, member_id)
    if target.role.is_privileged:
        raise InvalidRoleAssignment(MemberMessages.PRIVILEGED_HAVE_FULL_ACCESS)

    keys = [status_id for status_id, _ in grants]
    if len(keys) != len(set(keys)):
        raise PermissionValidationError(MemberMessages.DUPLICATE_STATUS)

    status_ids = {status_id for status_id in keys if status_id is not None}
    if status_ids:
        result = await session.exec(
            select(TaskStatus.id).where(
                TaskStatus.project_id == ctx.project_id,
                TaskStatus.id.in_(status_ids),
            )
        )
        if set(result.all()) != status_ids:
            raise PermissionValidationError(MemberMessages.UNKNOWN_STATUS)

    await _replace_grants(session, target, grants)
    logger.info("User %s replaced permissions of member %s (%d rows)", ctx.user_id, target.id, len(grants))
    return await list_member_permissions(session, target)
