"""
Unit tests for invite creation and redemption.

Covers:
- Redemption creating a membership with the invite's role and default grants
- Expired, exhausted and unknown codes
- The usage cap holding under concurrent redemption
"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from taskboard.core.errors import AccessDenied
from taskboard.models.invite import ProjectInvite
from taskboard.models.project import MemberPermission, ProjectMember, ProjectRole
from taskboard.services import invites as invites_service
from taskboard.services import members as members_service
from taskboard.services.membership import resolve_membership
from taskboard.testing.factories import create_invite, create_member, create_project, create_user


async def _members_of(session: AsyncSession, project_id: int) -> list[ProjectMember]:
    result = await session.exec(select(ProjectMember).where(ProjectMember.project_id == project_id))
    return list(result.all())


@pytest.mark.unit
@pytest.mark.service
async def test_redeem_creates_membership_with_invite_role(session: AsyncSession):
    owner = await create_user(session)
    project = await create_project(session, owner)
    invite = await create_invite(session, project, role=ProjectRole.viewer, max_uses=3)
    joiner = await create_user(session)

    member = await invites_service.redeem_invite(session, code=invite.code, user=joiner)
    await session.commit()

    assert member.role == ProjectRole.viewer
    assert member.user_id == joiner.id
    assert invite.uses == 1

    rows = (await session.exec(select(MemberPermission).where(MemberPermission.member_id == member.id))).all()
    assert [(row.status_id, row.can_read, row.can_create) for row in rows] == [(None, True, False)]


@pytest.mark.unit
@pytest.mark.service
async def test_redeem_unknown_code(session: AsyncSession):
    user = await create_user(session)

    with pytest.raises(invites_service.InviteInvalid):
        await invites_service.redeem_invite(session, code="does-not-exist", user=user)


@pytest.mark.unit
@pytest.mark.service
async def test_redeem_expired_invite(session: AsyncSession):
    owner = await create_user(session)
    project = await create_project(session, owner)
    invite = await create_invite(session, project, expires_at=datetime.now(timezone.utc) - timedelta(minutes=1))
    joiner = await create_user(session)

    with pytest.raises(invites_service.InviteExpired):
        await invites_service.redeem_invite(session, code=invite.code, user=joiner)

    assert len(await _members_of(session, project.id)) == 1


@pytest.mark.unit
@pytest.mark.service
async def test_redeem_exhausted_invite(session: AsyncSession):
    owner = await create_user(session)
    project = await create_project(session, owner)
    invite = await create_invite(session, project, max_uses=2, uses=2)
    joiner = await create_user(session)

    with pytest.raises(invites_service.InviteExhausted):
        await invites_service.redeem_invite(session, code=invite.code, user=joiner)


@pytest.mark.unit
@pytest.mark.service
async def test_existing_member_does_not_consume_a_use(session: AsyncSession):
    owner = await create_user(session)
    project = await create_project(session, owner)
    invite = await create_invite(session, project, max_uses=1)
    existing = await create_user(session)
    await create_member(session, project, existing)

    with pytest.raises(members_service.AlreadyMember):
        await invites_service.redeem_invite(session, code=invite.code, user=existing)

    await session.refresh(invite)
    assert invite.uses == 0


@pytest.mark.unit
@pytest.mark.service
async def test_single_use_invite_rejects_second_redemption(session: AsyncSession):
    owner = await create_user(session)
    project = await create_project(session, owner)
    invite = await create_invite(session, project, max_uses=1)
    first, second = await create_user(session), await create_user(session)

    await invites_service.redeem_invite(session, code=invite.code, user=first)
    await session.commit()

    with pytest.raises(invites_service.InviteExhausted):
        await invites_service.redeem_invite(session, code=invite.code, user=second)


@pytest.mark.unit
@pytest.mark.service
async def test_concurrent_redemptions_respect_usage_cap(session: AsyncSession, session_factory):
    owner = await create_user(session)
    project = await create_project(session, owner)
    invite = await create_invite(session, project, max_uses=1)
    first, second = await create_user(session), await create_user(session)

    async def redeem(user):
        async with session_factory() as own_session:
            member = await invites_service.redeem_invite(own_session, code=invite.code, user=user)
            await own_session.commit()
            return member

    results = await asyncio.gather(redeem(first), redeem(second), return_exceptions=True)

    joined = [result for result in results if isinstance(result, ProjectMember)]
    failures = [result for result in results if isinstance(result, BaseException)]
    assert len(joined) == 1
    assert len(failures) == 1
    assert isinstance(failures[0], invites_service.InviteExhausted)

    async with session_factory() as check_session:
        stored = (await check_session.exec(select(ProjectInvite).where(ProjectInvite.id == invite.id))).one()
        assert stored.uses == 1
        assert len(await _members_of(check_session, project.id)) == 2


@pytest.mark.unit
@pytest.mark.service
async def test_create_invite_rejects_owner_role_and_bad_caps(session: AsyncSession):
    owner = await create_user(session)
    project = await create_project(session, owner)
    ctx = await resolve_membership(session, owner, project.id)

    with pytest.raises(members_service.InvalidRoleAssignment):
        await invites_service.create_invite(session, ctx, role=ProjectRole.owner)
    with pytest.raises(invites_service.InviteValidationError):
        await invites_service.create_invite(session, ctx, max_uses=0)

    invite = await invites_service.create_invite(session, ctx, role=ProjectRole.admin, max_uses=5)
    assert invite.code
    assert invite.uses == 0
    assert invite.created_by_user_id == owner.id


@pytest.mark.unit
@pytest.mark.service
async def test_member_cannot_create_invites(session: AsyncSession):
    owner = await create_user(session)
    project = await create_project(session, owner)
    user = await create_user(session)
    await create_member(session, project, user)
    ctx = await resolve_membership(session, user, project.id)

    with pytest.raises(AccessDenied):
        await invites_service.create_invite(session, ctx)


@pytest.mark.unit
@pytest.mark.service
async def test_describe_invite_reports_validity(session: AsyncSession):
    owner = await create_user(session)
    project = await create_project(session, owner, name="Roadmap")
    active = await create_invite(session, project)
    used_up = await create_invite(session, project, max_uses=1, uses=1)

    description = await invites_service.describe_invite(session, active.code)
    assert description.is_valid
    assert description.project.name == "Roadmap"

    description = await invites_service.describe_invite(session, used_up.code)
    assert not description.is_valid
    assert description.reason == invites_service.InviteExhausted.default_message

    description = await invites_service.describe_invite(session, "missing")
    assert description.invite is None
    assert not description.is_valid
