from typing import List

from fastapi import APIRouter, Response, status

from taskboard.api.deps import CurrentUser, ProjectContext, SessionDep
from taskboard.api.errors import translate_service_errors
from taskboard.models.project import Project, ProjectMember
from taskboard.models.user import User
from taskboard.schemas.member import (
    MemberAdd,
    MemberCreateUser,
    MemberPermissionRead,
    MemberPermissionsUpdate,
    MemberRead,
    MemberRoleUpdate,
)
from taskboard.schemas.project import ProjectCreate, ProjectRead, ProjectSummary, ProjectUpdate
from taskboard.schemas.user import UserPublic
from taskboard.services import attachments as attachments_service
from taskboard.services import members as members_service
from taskboard.services import projects as projects_service
from taskboard.services.permissions import Grant

router = APIRouter()


def _serialize_member(member: ProjectMember, user: User | None) -> MemberRead:
    payload = MemberRead.model_validate(member)
    if user is not None:
        payload.user = UserPublic.model_validate(user)
    return payload


@router.get("/", response_model=List[ProjectSummary])
async def list_projects(session: SessionDep, current_user: CurrentUser) -> List[ProjectSummary]:
    overviews = await projects_service.list_projects_for_user(session, current_user)
    return [
        ProjectSummary(
            **ProjectRead.model_validate(item.project).model_dump(),
            my_role=item.my_role,
            members_count=item.members_count,
            tasks_count=item.tasks_count,
        )
        for item in overviews
    ]


@router.post("/", response_model=ProjectRead, status_code=status.HTTP_201_CREATED)
@translate_service_errors
async def create_project(project_in: ProjectCreate, session: SessionDep, current_user: CurrentUser) -> Project:
    project = await projects_service.create_project(
        session,
        owner=current_user,
        name=project_in.name,
        description=project_in.description,
    )
    await session.commit()
    await session.refresh(project)
    return project


@router.get("/{project_id}", response_model=ProjectRead)
@translate_service_errors
async def read_project(project_id: int, session: SessionDep, membership: ProjectContext) -> Project:
    return await projects_service.get_project(session, project_id)


@router.patch("/{project_id}", response_model=ProjectRead)
@translate_service_errors
async def update_project(
    project_id: int,
    project_in: ProjectUpdate,
    session: SessionDep,
    membership: ProjectContext,
) -> Project:
    project = await projects_service.get_project(session, project_id)
    project = await projects_service.update_project(
        session,
        membership,
        project,
        changes=project_in.model_dump(exclude_unset=True),
    )
    await session.commit()
    await session.refresh(project)
    return project


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
@translate_service_errors
async def delete_project(project_id: int, session: SessionDep, membership: ProjectContext) -> Response:
    project = await projects_service.get_project(session, project_id)
    stored_files = await projects_service.delete_project(session, membership, project)
    await session.commit()
    attachments_service.remove_stored_files(stored_files)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{project_id}/members", response_model=List[MemberRead])
@translate_service_errors
async def list_members(project_id: int, session: SessionDep, membership: ProjectContext) -> List[MemberRead]:
    rows = await members_service.list_members(session, project_id)
    return [_serialize_member(member, user) for member, user in rows]


@router.post("/{project_id}/members", response_model=MemberRead, status_code=status.HTTP_201_CREATED)
@translate_service_errors
async def add_member(
    project_id: int,
    member_in: MemberAdd,
    session: SessionDep,
    membership: ProjectContext,
) -> MemberRead:
    member = await members_service.add_member(session, membership, user_id=member_in.user_id, role=member_in.role)
    await session.commit()
    await session.refresh(member)
    user = await session.get(User, member.user_id)
    return _serialize_member(member, user)


@router.post("/{project_id}/members/create", response_model=MemberRead, status_code=status.HTTP_201_CREATED)
@translate_service_errors
async def create_user_and_add_member(
    project_id: int,
    member_in: MemberCreateUser,
    session: SessionDep,
    membership: ProjectContext,
) -> MemberRead:
    member, user = await members_service.create_user_and_add_member(
        session,
        membership,
        email=member_in.email,
        name=member_in.name,
        password=member_in.password,
        role=member_in.role,
    )
    await session.commit()
    await session.refresh(member)
    await session.refresh(user)
    return _serialize_member(member, user)


@router.patch("/{project_id}/members/{member_id}", response_model=MemberRead)
@translate_service_errors
async def update_member_role(
    project_id: int,
    member_id: int,
    member_in: MemberRoleUpdate,
    session: SessionDep,
    membership: ProjectContext,
) -> MemberRead:
    member = await members_service.update_member_role(session, membership, member_id=member_id, role=member_in.role)
    await session.commit()
    await session.refresh(member)
    user = await session.get(User, member.user_id)
    return _serialize_member(member, user)


@router.delete("/{project_id}/members/{member_id}", status_code=status.HTTP_204_NO_CONTENT)
@translate_service_errors
async def remove_member(
    project_id: int,
    member_id: int,
    session: SessionDep,
    membership: ProjectContext,
) -> Response:
    await members_service.remove_member(session, membership, member_id=member_id)
    await session.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{project_id}/members/{member_id}/permissions", response_model=List[MemberPermissionRead])
@translate_service_errors
async def read_member_permissions(
    project_id: int,
    member_id: int,
    session: SessionDep,
    membership: ProjectContext,
):
    member = await members_service.get_member(session, project_id, member_id)
    return await members_service.list_member_permissions(session, member)


@router.put("/{project_id}/members/{member_id}/permissions", response_model=List[MemberPermissionRead])
@translate_service_errors
async def replace_member_permissions(
    project_id: int,
    member_id: int,
    permissions_in: MemberPermissionsUpdate,
    session: SessionDep,
    membership: ProjectContext,
):
    grants = [
        (
            item.status_id,
            Grant(
                can_read=item.can_read,
                can_create=item.can_create,
                can_edit=item.can_edit,
                can_delete=item.can_delete,
            ),
        )
        for item in permissions_in.permissions
    ]
    rows = await members_service.set_member_permissions(session, membership, member_id=member_id, grants=grants)
    await session.commit()
    return rows
