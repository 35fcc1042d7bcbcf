from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from pydantic import ValidationError
from sqlmodel.ext.asyncio.session import AsyncSession

from taskboard.api.errors import http_error
from taskboard.core.config import settings
from taskboard.core.errors import ServiceError
from taskboard.core.messages import AuthMessages
from taskboard.db.session import get_session
from taskboard.models.task import Task
from taskboard.models.user import User
from taskboard.schemas.token import TokenPayload
from taskboard.services import membership as membership_service
from taskboard.services import tasks as tasks_service
from taskboard.services.permissions import MembershipContext

SessionDep = Annotated[AsyncSession, Depends(get_session)]

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_STR}/auth/token")


def _credentials_error(detail: str = AuthMessages.INVALID_TOKEN) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    token: Annotated[str, Depends(oauth2_scheme)],
    session: SessionDep,
) -> User:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        token_data = TokenPayload(**payload)
    except (JWTError, ValidationError) as exc:
        raise _credentials_error() from exc

    if not token_data.sub or not token_data.sub.isdigit():
        raise _credentials_error()

    user = await session.get(User, int(token_data.sub))
    if not user:
        raise _credentials_error(AuthMessages.USER_NOT_FOUND)
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]


async def get_global_admin(current_user: CurrentUser) -> User:
    if not current_user.is_global_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=AuthMessages.ADMIN_REQUIRED)
    return current_user


GlobalAdmin = Annotated[User, Depends(get_global_admin)]


async def get_project_context(
    project_id: int,
    session: SessionDep,
    current_user: CurrentUser,
) -> MembershipContext:
    """Resolved once per request; every permission check reuses it."""
    try:
        return await membership_service.resolve_membership(session, current_user, project_id)
    except ServiceError as exc:
        raise http_error(exc) from exc


ProjectContext = Annotated[MembershipContext, Depends(get_project_context)]


@dataclass
class TaskContext:
    task: Task
    membership: MembershipContext


async def get_task_context(
    task_id: int,
    session: SessionDep,
    current_user: CurrentUser,
) -> TaskContext:
    try:
        task = await tasks_service.get_task(session, task_id)
        membership = await membership_service.resolve_membership(session, current_user, task.project_id)
    except ServiceError as exc:
        raise http_error(exc) from exc
    return TaskContext(task=task, membership=membership)


TaskContextDep = Annotated[TaskContext, Depends(get_task_context)]
