"""
Integration tests for task status endpoints.

Tests /api/v1/projects/{project_id}/task-statuses including the per-status
grants reported to the caller.
"""

import pytest
from httpx import AsyncClient
from sqlmodel.ext.asyncio.session import AsyncSession

from taskboard.models.project import ProjectRole
from taskboard.services import task_statuses as task_statuses_service
from taskboard.testing.factories import create_member, create_project, create_task, create_user, get_auth_headers, grant


@pytest.mark.integration
async def test_list_statuses_reports_caller_grants(client: AsyncClient, session: AsyncSession):
    owner = await create_user(session)
    project = await create_project(session, owner)
    todo, in_progress, done = await task_statuses_service.list_statuses(session, project.id)
    user = await create_user(session)
    member = await create_member(session, project, user)
    await grant(session, member, None, can_read=True)
    await grant(session, member, in_progress, can_read=True, can_create=True, can_edit=True)

    response = await client.get(f"/api/v1/projects/{project.id}/task-statuses/", headers=get_auth_headers(user))

    assert response.status_code == 200
    data = response.json()
    assert [item["slug"] for item in data] == ["todo", "in_progress", "done"]
    grants = {item["id"]: item["permissions"] for item in data}
    assert grants[todo.id] == {"can_read": True, "can_create": False, "can_edit": False, "can_delete": False}
    assert grants[in_progress.id]["can_create"] is True
    assert grants[done.id]["can_edit"] is False


@pytest.mark.integration
async def test_owner_sees_full_grants(client: AsyncClient, session: AsyncSession):
    owner = await create_user(session)
    project = await create_project(session, owner)

    response = await client.get(f"/api/v1/projects/{project.id}/task-statuses/", headers=get_auth_headers(owner))

    assert all(all(item["permissions"].values()) for item in response.json())


@pytest.mark.integration
async def test_status_lifecycle(client: AsyncClient, session: AsyncSession):
    owner = await create_user(session)
    project = await create_project(session, owner)
    headers = get_auth_headers(owner)
    base = f"/api/v1/projects/{project.id}/task-statuses"

    created = await client.post(f"{base}/", headers=headers, json={"title": "In Review"})
    assert created.status_code == 201
    status_id = created.json()["id"]
    assert created.json()["slug"] == "in_review"
    assert created.json()["position"] == 3

    duplicate = await client.post(f"{base}/", headers=headers, json={"title": "Review", "slug": "in_review"})
    assert duplicate.status_code == 409

    updated = await client.patch(f"{base}/{status_id}", headers=headers, json={"title": "Review", "color": "#ff0000"})
    assert updated.status_code == 200
    assert updated.json()["title"] == "Review"
    assert updated.json()["color"] == "#ff0000"

    listing = (await client.get(f"{base}/", headers=headers)).json()
    reordered_ids = [status_id] + [item["id"] for item in listing if item["id"] != status_id]
    reordered = await client.post(f"{base}/reorder", headers=headers, json={"status_ids": reordered_ids})
    assert reordered.status_code == 200
    assert [item["id"] for item in reordered.json()] == reordered_ids
    assert [item["position"] for item in reordered.json()] == [0, 1, 2, 3]

    deleted = await client.delete(f"{base}/{status_id}", headers=headers)
    assert deleted.status_code == 204


@pytest.mark.integration
async def test_status_in_use_cannot_be_deleted(client: AsyncClient, session: AsyncSession):
    owner = await create_user(session)
    project = await create_project(session, owner)
    todo = (await task_statuses_service.list_statuses(session, project.id))[0]
    await create_task(session, project, todo)

    response = await client.delete(
        f"/api/v1/projects/{project.id}/task-statuses/{todo.id}",
        headers=get_auth_headers(owner),
    )

    assert response.status_code == 400
    assert response.headers["X-Error-Kind"] == "status_in_use"


@pytest.mark.integration
async def test_member_cannot_manage_statuses(client: AsyncClient, session: AsyncSession):
    owner = await create_user(session)
    project = await create_project(session, owner)
    user = await create_user(session)
    await create_member(session, project, user, role=ProjectRole.member)

    response = await client.post(
        f"/api/v1/projects/{project.id}/task-statuses/",
        headers=get_auth_headers(user),
        json={"title": "Mine"},
    )

    assert response.status_code == 403
