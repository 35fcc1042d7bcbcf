"""
Unit tests for task status management.

Covers default seeding, slug handling, reordering and the guards around
deleting a status.
"""

import pytest
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from taskboard.core.errors import AccessDenied
from taskboard.models.project import MemberPermission, ProjectRole
from taskboard.services import task_statuses as task_statuses_service
from taskboard.services.membership import resolve_membership
from taskboard.testing.factories import create_member, create_project, create_task, create_user, grant


async def _owner_context(session: AsyncSession):
    owner = await create_user(session)
    project = await create_project(session, owner)
    return project, await resolve_membership(session, owner, project.id)


@pytest.mark.unit
@pytest.mark.service
async def test_new_project_has_default_statuses(session: AsyncSession):
    project, _ = await _owner_context(session)

    statuses = await task_statuses_service.list_statuses(session, project.id)

    assert [status.slug for status in statuses] == ["todo", "in_progress", "done"]
    assert [status.position for status in statuses] == [0, 1, 2]


@pytest.mark.unit
@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("In Review", "in_review"),
        ("  QA  Testing! ", "qa_testing"),
        ("done", "done"),
        ("***", ""),
    ],
)
def test_slugify(value, expected):
    assert task_statuses_service.slugify(value) == expected


@pytest.mark.unit
@pytest.mark.service
async def test_create_status_appends_at_end(session: AsyncSession):
    project, ctx = await _owner_context(session)

    status = await task_statuses_service.create_status(session, ctx, title="In Review")

    assert status.slug == "in_review"
    assert status.position == 3
    assert status.color
    assert status.icon


@pytest.mark.unit
@pytest.mark.service
async def test_create_status_rejects_duplicate_slug(session: AsyncSession):
    _, ctx = await _owner_context(session)

    with pytest.raises(task_statuses_service.StatusConflict):
        await task_statuses_service.create_status(session, ctx, title="Done again", slug="done")


@pytest.mark.unit
@pytest.mark.service
async def test_member_cannot_create_status(session: AsyncSession):
    owner = await create_user(session)
    project = await create_project(session, owner)
    user = await create_user(session)
    await create_member(session, project, user, role=ProjectRole.member)
    ctx = await resolve_membership(session, user, project.id)

    with pytest.raises(AccessDenied):
        await task_statuses_service.create_status(session, ctx, title="Blocked")


@pytest.mark.unit
@pytest.mark.service
async def test_reorder_statuses(session: AsyncSession):
    project, ctx = await _owner_context(session)
    todo, in_progress, done = await task_statuses_service.list_statuses(session, project.id)

    await task_statuses_service.reorder_statuses(session, ctx, ordered_ids=[done.id, todo.id, in_progress.id])

    statuses = await task_statuses_service.list_statuses(session, project.id)
    assert [status.id for status in statuses] == [done.id, todo.id, in_progress.id]

    with pytest.raises(task_statuses_service.StatusValidationError):
        await task_statuses_service.reorder_statuses(session, ctx, ordered_ids=[done.id, todo.id])


@pytest.mark.unit
@pytest.mark.service
async def test_delete_status_refuses_when_tasks_use_it(session: AsyncSession):
    project, ctx = await _owner_context(session)
    todo = (await task_statuses_service.list_statuses(session, project.id))[0]
    await create_task(session, project, todo)

    with pytest.raises(task_statuses_service.StatusInUse):
        await task_statuses_service.delete_status(session, ctx, status_id=todo.id)


@pytest.mark.unit
@pytest.mark.service
async def test_delete_status_refuses_last_status(session: AsyncSession):
    owner = await create_user(session)
    project = await create_project(session, owner, with_default_statuses=False)
    ctx = await resolve_membership(session, owner, project.id)
    only = await task_statuses_service.create_status(session, ctx, title="Only")

    with pytest.raises(task_statuses_service.LastStatus):
        await task_statuses_service.delete_status(session, ctx, status_id=only.id)


@pytest.mark.unit
@pytest.mark.service
async def test_delete_status_drops_grants_and_resequences(session: AsyncSession):
    project, ctx = await _owner_context(session)
    todo, in_progress, done = await task_statuses_service.list_statuses(session, project.id)
    user = await create_user(session)
    member = await create_member(session, project, user)
    await grant(session, member, in_progress, can_read=True, can_edit=True)

    await task_statuses_service.delete_status(session, ctx, status_id=in_progress.id)
    await session.commit()

    statuses = await task_statuses_service.list_statuses(session, project.id)
    assert [(status.id, status.position) for status in statuses] == [(todo.id, 0), (done.id, 1)]
    rows = (await session.exec(select(MemberPermission).where(MemberPermission.member_id == member.id))).all()
    assert rows == []
