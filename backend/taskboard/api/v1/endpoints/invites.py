from typing import List

from fastapi import APIRouter, Response, status

from taskboard.api.deps import CurrentUser, ProjectContext, SessionDep
from taskboard.api.errors import translate_service_errors
from taskboard.models.invite import ProjectInvite
from taskboard.models.user import User
from taskboard.schemas.invite import InviteCreate, InviteRead, InviteStatus
from taskboard.schemas.member import MemberRead
from taskboard.schemas.user import UserPublic
from taskboard.services import invites as invites_service

router = APIRouter()


@router.get("/projects/{project_id}/invites", response_model=List[InviteRead])
@translate_service_errors
async def list_invites(project_id: int, session: SessionDep, membership: ProjectContext) -> List[ProjectInvite]:
    return await invites_service.list_invites(session, membership)


@router.post("/projects/{project_id}/invites", response_model=InviteRead, status_code=status.HTTP_201_CREATED)
@translate_service_errors
async def create_invite(
    project_id: int,
    invite_in: InviteCreate,
    session: SessionDep,
    membership: ProjectContext,
) -> ProjectInvite:
    invite = await invites_service.create_invite(
        session,
        membership,
        role=invite_in.role,
        max_uses=invite_in.max_uses,
        expires_at=invite_in.expires_at,
    )
    await session.commit()
    await session.refresh(invite)
    return invite


@router.delete("/projects/{project_id}/invites/{invite_id}", status_code=status.HTTP_204_NO_CONTENT)
@translate_service_errors
async def delete_invite(
    project_id: int,
    invite_id: int,
    session: SessionDep,
    membership: ProjectContext,
) -> Response:
    await invites_service.delete_invite(session, membership, invite_id=invite_id)
    await session.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/invites/{code}", response_model=InviteStatus)
async def describe_invite(code: str, session: SessionDep) -> InviteStatus:
    description = await invites_service.describe_invite(session, code)
    invite, project = description.invite, description.project
    return InviteStatus(
        code=code,
        is_valid=description.is_valid,
        reason=description.reason,
        project_id=invite.project_id if invite else None,
        project_name=project.name if project else None,
        role=invite.role if invite else None,
        expires_at=invite.expires_at if invite else None,
        max_uses=invite.max_uses if invite else None,
        uses=invite.uses if invite else None,
    )


@router.post("/invites/{code}/accept", response_model=MemberRead, status_code=status.HTTP_201_CREATED)
@translate_service_errors
async def accept_invite(code: str, session: SessionDep, current_user: CurrentUser) -> MemberRead:
    member = await invites_service.redeem_invite(session, code=code, user=current_user)
    await session.commit()
    await session.refresh(member)
    payload = MemberRead.model_validate(member)
    payload.user = UserPublic.model_validate(current_user)
    return payload
