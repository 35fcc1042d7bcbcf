"""Resolve who the caller is inside one project, once per request."""

from __future__ import annotations

from typing import Any, Sequence

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from taskboard.core.errors import AccessDenied
from taskboard.core.messages import AccessMessages
from taskboard.models.project import MemberPermission, Project, ProjectMember, ProjectRole
from taskboard.services.permissions import DenyReason, MembershipContext, PermissionIndex
from taskboard.services.projects import ProjectNotFound


class NotAMember(AccessDenied):
    kind = "not_a_member"
    default_message = AccessMessages.NOT_A_MEMBER

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message, reason=DenyReason.not_a_member.value)


def global_admin_context(user_id: int, project_id: int) -> MembershipContext:
    return MembershipContext(
        user_id=user_id,
        project_id=project_id,
        role=ProjectRole.owner,
        is_global_admin=True,
        permissions=PermissionIndex.universal(),
    )


async def get_membership(
    session: AsyncSession,
    *,
    project_id: int,
    user_id: int,
) -> ProjectMember | None:
    stmt = select(ProjectMember).where(
        ProjectMember.project_id == project_id,
        ProjectMember.user_id == user_id,
    )
    result = await session.exec(stmt)
    return result.one_or_none()


async def list_permission_rows(session: AsyncSession, member_id: int) -> Sequence[MemberPermission]:
    stmt = select(MemberPermission).where(MemberPermission.member_id == member_id)
    result = await session.exec(stmt)
    return result.all()


async def resolve_membership(session: AsyncSession, actor: Any, project_id: int) -> MembershipContext:
    if getattr(actor, "is_global_admin", False):
        if await session.get(Project, project_id) is None:
            raise ProjectNotFound()
        return global_admin_context(actor.id, project_id)

    member = await get_membership(session, project_id=project_id, user_id=actor.id)
    if member is None:
        raise NotAMember()

    if member.role.is_privileged:
        permissions = PermissionIndex()
    else:
        permissions = PermissionIndex.from_rows(await list_permission_rows(session, member.id))

    return MembershipContext(
        user_id=actor.id,
        project_id=project_id,
        role=member.role,
        member_id=member.id,
        permissions=permissions,
    )
