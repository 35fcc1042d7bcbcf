from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordRequestForm

from taskboard.api.deps import CurrentUser, SessionDep
from taskboard.api.errors import translate_service_errors
from taskboard.core.messages import AuthMessages
from taskboard.core.rate_limit import AUTH_RATE_LIMIT, limiter
from taskboard.core.security import create_access_token
from taskboard.models.user import User
from taskboard.schemas.token import Token
from taskboard.schemas.user import UserCreate, UserRead
from taskboard.services import users as users_service

router = APIRouter()


@router.post("/register", response_model=UserRead, status_code=status.HTTP_201_CREATED)
@limiter.limit(AUTH_RATE_LIMIT)
@translate_service_errors
async def register_user(request: Request, user_in: UserCreate, session: SessionDep) -> User:
    user = await users_service.register_user(
        session,
        email=user_in.email,
        name=user_in.name,
        password=user_in.password,
    )
    await session.commit()
    await session.refresh(user)
    return user


@router.post("/token", response_model=Token)
@limiter.limit(AUTH_RATE_LIMIT)
async def login_access_token(
    request: Request,
    session: SessionDep,
    form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
) -> Token:
    user = await users_service.authenticate(session, email=form_data.username, password=form_data.password)
    if user is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=AuthMessages.INVALID_CREDENTIALS)
    return Token(access_token=create_access_token(user.id))


@router.get("/me", response_model=UserRead)
async def read_current_user(current_user: CurrentUser) -> User:
    return current_user
