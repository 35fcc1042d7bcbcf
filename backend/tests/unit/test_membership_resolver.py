"""Tests for building a caller's membership context inside a project."""

import pytest
from sqlmodel.ext.asyncio.session import AsyncSession

from taskboard.models.project import ProjectRole
from taskboard.services import task_statuses as task_statuses_service
from taskboard.services.membership import NotAMember, resolve_membership
from taskboard.services.permissions import Action, Grant, check_permission
from taskboard.services.projects import ProjectNotFound
from taskboard.testing.factories import create_member, create_project, create_user, grant


@pytest.mark.unit
@pytest.mark.service
async def test_global_admin_gets_full_context_without_membership(session: AsyncSession):
    owner = await create_user(session)
    project = await create_project(session, owner)
    admin = await create_user(session, is_global_admin=True)

    ctx = await resolve_membership(session, admin, project.id)

    assert ctx.is_global_admin
    assert ctx.member_id is None
    assert ctx.acts_as_owner
    assert check_permission(ctx, Action.delete, None).allowed


@pytest.mark.unit
@pytest.mark.service
async def test_outsider_is_rejected(session: AsyncSession):
    owner = await create_user(session)
    project = await create_project(session, owner)
    outsider = await create_user(session)

    with pytest.raises(NotAMember) as exc_info:
        await resolve_membership(session, outsider, project.id)

    assert exc_info.value.reason == "not_a_member"


@pytest.mark.unit
@pytest.mark.service
async def test_owner_context_ignores_grant_rows(session: AsyncSession):
    owner = await create_user(session)
    project = await create_project(session, owner)

    ctx = await resolve_membership(session, owner, project.id)

    assert ctx.role == ProjectRole.owner
    assert ctx.is_privileged
    assert not ctx.is_global_admin


@pytest.mark.unit
@pytest.mark.service
async def test_member_context_loads_grant_rows(session: AsyncSession):
    owner = await create_user(session)
    project = await create_project(session, owner)
    todo, in_progress, _ = await task_statuses_service.list_statuses(session, project.id)
    user = await create_user(session)
    member = await create_member(session, project, user, role=ProjectRole.member)
    await grant(session, member, None, can_read=True)
    await grant(session, member, in_progress, can_read=True, can_create=True, can_edit=True)

    ctx = await resolve_membership(session, user, project.id)

    assert ctx.member_id == member.id
    assert ctx.permissions.lookup(todo.id) == Grant(can_read=True)
    assert ctx.permissions.lookup(in_progress.id) == Grant(can_read=True, can_create=True, can_edit=True)
    assert not check_permission(ctx, Action.create, todo.id)
    assert check_permission(ctx, Action.create, in_progress.id)


@pytest.mark.unit
@pytest.mark.service
async def test_global_admin_on_missing_project_is_not_found(session: AsyncSession):
    admin = await create_user(session, is_global_admin=True)

    with pytest.raises(ProjectNotFound):
        await resolve_membership(session, admin, 999)
