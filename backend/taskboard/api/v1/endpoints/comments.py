from fastapi import APIRouter, Response, status

from taskboard.api.deps import CurrentUser, SessionDep
from taskboard.api.errors import translate_service_errors
from taskboard.models.comment import Comment
from taskboard.schemas.comment import CommentRead, CommentUpdate
from taskboard.services import comments as comments_service

router = APIRouter()


@router.patch("/{comment_id}", response_model=CommentRead)
@translate_service_errors
async def update_comment(
    comment_id: int,
    comment_in: CommentUpdate,
    session: SessionDep,
    current_user: CurrentUser,
) -> Comment:
    comment = await comments_service.update_comment(
        session,
        comment_id=comment_id,
        user=current_user,
        content=comment_in.content,
    )
    await session.commit()
    await session.refresh(comment)
    return comment


@router.delete("/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
@translate_service_errors
async def delete_comment(comment_id: int, session: SessionDep, current_user: CurrentUser) -> Response:
    await comments_service.delete_comment(session, comment_id=comment_id, user=current_user)
    await session.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
