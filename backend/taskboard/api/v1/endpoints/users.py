from typing import List

from fastapi import APIRouter, Response, status

from taskboard.api.deps import CurrentUser, GlobalAdmin, SessionDep
from taskboard.api.errors import translate_service_errors
from taskboard.models.user import User
from taskboard.schemas.user import UserAdminUpdate, UserPublic, UserRead
from taskboard.services import users as users_service

router = APIRouter()


@router.get("/", response_model=List[UserPublic])
async def list_users(session: SessionDep, current_user: CurrentUser) -> List[User]:
    return await users_service.list_users(session)


@router.patch("/{user_id}", response_model=UserRead)
@translate_service_errors
async def update_user(
    user_id: int,
    user_in: UserAdminUpdate,
    session: SessionDep,
    current_admin: GlobalAdmin,
) -> User:
    user = await users_service.get_user(session, user_id)
    user = await users_service.update_user_as_admin(session, user, changes=user_in.model_dump(exclude_unset=True))
    await session.commit()
    await session.refresh(user)
    return user


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
@translate_service_errors
async def delete_user(user_id: int, session: SessionDep, current_admin: GlobalAdmin) -> Response:
    await users_service.delete_user(session, actor=current_admin, user_id=user_id)
    await session.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
