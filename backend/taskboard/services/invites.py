from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlmodel import col, select, update
from sqlmodel.ext.asyncio.session import AsyncSession

from taskboard.core.errors import Gone, NotFound, ServiceError, ValidationFailed
from taskboard.core.messages import InviteMessages
from taskboard.models.invite import ProjectInvite
from taskboard.models.project import Project, ProjectMember, ProjectRole
from taskboard.services import members as members_service
from taskboard.services import membership as membership_service
from taskboard.services.permissions import MembershipContext, can_manage_project, ensure_allowed

logger = logging.getLogger(__name__)

INVITE_CODE_BYTES = 16
INVITE_CODE_ATTEMPTS = 10


class InviteInvalid(NotFound):
    kind = "invite_invalid"
    default_message = InviteMessages.INVALID


class InviteExpired(Gone):
    kind = "invite_expired"
    default_message = InviteMessages.EXPIRED


class InviteExhausted(Gone):
    kind = "invite_exhausted"
    default_message = InviteMessages.EXHAUSTED


class InviteValidationError(ValidationFailed):
    kind = "invalid_invite"


@dataclass(frozen=True)
class InviteDescription:
    invite: ProjectInvite | None
    project: Project | None
    is_valid: bool
    reason: str | None


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def rejection_for(invite: ProjectInvite, *, now: datetime | None = None) -> ServiceError | None:
    """Return the error redeeming this invite would raise right now, if any."""
    now = now or datetime.now(timezone.utc)
    if invite.expires_at is not None and _as_utc(invite.expires_at) <= now:
        return InviteExpired()
    if invite.max_uses is not None and invite.uses >= invite.max_uses:
        return InviteExhausted()
    return None


def invite_is_active(invite: ProjectInvite, *, now: datetime | None = None) -> bool:
    return rejection_for(invite, now=now) is None


async def _generate_unique_code(session: AsyncSession) -> str:
    for _ in range(INVITE_CODE_ATTEMPTS):
        code = secrets.token_urlsafe(INVITE_CODE_BYTES)
        result = await session.exec(select(ProjectInvite.id).where(ProjectInvite.code == code))
        if result.one_or_none() is None:
            return code
    raise RuntimeError(InviteMessages.CODE_GENERATION_FAILED)


async def create_invite(
    session: AsyncSession,
    ctx: MembershipContext,
    *,
    role: ProjectRole = ProjectRole.member,
    max_uses: int | None = None,
    expires_at: datetime | None = None,
) -> ProjectInvite:
    ensure_allowed(can_manage_project(ctx))
    role = ProjectRole(role)
    if role == ProjectRole.owner:
        raise members_service.InvalidRoleAssignment(InviteMessages.INVALID_ROLE)
    if max_uses is not None and max_uses < 1:
        raise InviteValidationError(InviteMessages.MAX_USES_POSITIVE)

    invite = ProjectInvite(
        project_id=ctx.project_id,
        code=await _generate_unique_code(session),
        role=role,
        max_uses=max_uses,
        expires_at=expires_at,
        created_by_user_id=ctx.user_id,
    )
    session.add(invite)
    await session.flush()
    logger.info("User %s created invite %s for project %s", ctx.user_id, invite.id, ctx.project_id)
    return invite


async def list_invites(session: AsyncSession, ctx: MembershipContext) -> list[ProjectInvite]:
    ensure_allowed(can_manage_project(ctx))
    result = await session.exec(
        select(ProjectInvite)
        .where(ProjectInvite.project_id == ctx.project_id)
        .order_by(ProjectInvite.created_at.desc(), ProjectInvite.id.desc())
    )
    return list(result.all())


async def delete_invite(session: AsyncSession, ctx: MembershipContext, *, invite_id: int) -> None:
    ensure_allowed(can_manage_project(ctx))
    result = await session.exec(
        select(ProjectInvite).where(
            ProjectInvite.id == invite_id,
            ProjectInvite.project_id == ctx.project_id,
        )
    )
    invite = result.one_or_none()
    if invite is None:
        raise InviteInvalid()
    await session.delete(invite)
    await session.flush()


async def get_invite_by_code(session: AsyncSession, code: str) -> ProjectInvite | None:
    result = await session.exec(select(ProjectInvite).where(ProjectInvite.code == code))
    return result.one_or_none()


async def describe_invite(session: AsyncSession, code: str) -> InviteDescription:
    invite = await get_invite_by_code(session, code)
    if invite is None:
        return InviteDescription(invite=None, project=None, is_valid=False, reason=InviteMessages.INVALID)
    project = await session.get(Project, invite.project_id)
    rejection = rejection_for(invite)
    return InviteDescription(
        invite=invite,
        project=project,
        is_valid=rejection is None,
        reason=rejection.message if rejection else None,
    )


async def redeem_invite(session: AsyncSession, *, code: str, user) -> ProjectMember:
    """
    Turn an invite into a membership for ``user``.

    The usage counter is bumped with a single guarded UPDATE so concurrent
    redemptions can never push ``uses`` past ``max_uses``. The membership and
    its default grants are written in the same transaction; the caller commits.
    """
    invite = await get_invite_by_code(session, code)
    if invite is None:
        raise InviteInvalid()
    rejection = rejection_for(invite)
    if rejection is not None:
        raise rejection

    existing = await membership_service.get_membership(session, project_id=invite.project_id, user_id=user.id)
    if existing is not None:
        raise members_service.AlreadyMember(InviteMessages.ALREADY_MEMBER)

    stmt = (
        update(ProjectInvite)
        .where(
            col(ProjectInvite.id) == invite.id,
            (col(ProjectInvite.max_uses).is_(None)) | (col(ProjectInvite.uses) < col(ProjectInvite.max_uses)),
        )
        .values(uses=col(ProjectInvite.uses) + 1)
        .execution_options(synchronize_session=False)
    )
    result = await session.exec(stmt)
    if result.rowcount == 0:
        raise InviteExhausted()

    member = await members_service.add_member_unchecked(
        session,
        project_id=invite.project_id,
        user_id=user.id,
        role=invite.role,
    )
    await session.refresh(invite)
    logger.info("User %s joined project %s through invite %s", user.id, invite.project_id, invite.id)
    return member
