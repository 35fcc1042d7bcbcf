from typing import List, Optional

from fastapi import APIRouter, File, Query, Response, UploadFile, status

from taskboard.api.deps import ProjectContext, SessionDep, TaskContextDep
from taskboard.api.errors import translate_service_errors
from taskboard.models.comment import Comment
from taskboard.models.task import Task, TaskAttachment
from taskboard.schemas.attachment import AttachmentRead
from taskboard.schemas.comment import CommentCreate, CommentRead
from taskboard.schemas.task import TaskCreate, TaskRead, TaskUpdate
from taskboard.schemas.user import UserPublic
from taskboard.services import attachments as attachments_service
from taskboard.services import comments as comments_service
from taskboard.services import tasks as tasks_service

router = APIRouter()


@router.get("/projects/{project_id}/tasks", response_model=List[TaskRead])
async def list_tasks(
    project_id: int,
    session: SessionDep,
    membership: ProjectContext,
    status_id: Optional[int] = Query(default=None),
) -> List[Task]:
    return await tasks_service.list_tasks(session, membership, status_id=status_id)


@router.post("/projects/{project_id}/tasks", response_model=TaskRead, status_code=status.HTTP_201_CREATED)
@translate_service_errors
async def create_task(
    project_id: int,
    task_in: TaskCreate,
    session: SessionDep,
    membership: ProjectContext,
) -> Task:
    task = await tasks_service.create_task(
        session,
        membership,
        title=task_in.title,
        description=task_in.description,
        task_status_id=task_in.task_status_id,
        priority=task_in.priority,
        assigned_to_user_id=task_in.assigned_to_user_id,
        due_date=task_in.due_date,
        checklist=task_in.checklist,
    )
    await session.commit()
    await session.refresh(task)
    return task


@router.get("/tasks/{task_id}", response_model=TaskRead)
@translate_service_errors
async def read_task(context: TaskContextDep) -> Task:
    tasks_service.ensure_can_read(context.membership, context.task)
    return context.task


@router.patch("/tasks/{task_id}", response_model=TaskRead)
@translate_service_errors
async def update_task(task_in: TaskUpdate, session: SessionDep, context: TaskContextDep) -> Task:
    task = await tasks_service.update_task(
        session,
        context.membership,
        context.task,
        changes=task_in.model_dump(exclude_unset=True),
    )
    await session.commit()
    await session.refresh(task)
    return task


@router.delete("/tasks/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
@translate_service_errors
async def delete_task(session: SessionDep, context: TaskContextDep) -> Response:
    stored_files = await tasks_service.delete_task(session, context.membership, context.task)
    await session.commit()
    attachments_service.remove_stored_files(stored_files)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/tasks/{task_id}/comments", response_model=List[CommentRead])
@translate_service_errors
async def list_task_comments(session: SessionDep, context: TaskContextDep) -> List[CommentRead]:
    rows = await comments_service.list_comments(session, context.membership, context.task)
    return [
        CommentRead.model_validate(comment).model_copy(update={"author": UserPublic.model_validate(author)})
        for comment, author in rows
    ]


@router.post("/tasks/{task_id}/comments", response_model=CommentRead, status_code=status.HTTP_201_CREATED)
@translate_service_errors
async def create_task_comment(
    comment_in: CommentCreate,
    session: SessionDep,
    context: TaskContextDep,
) -> Comment:
    comment = await comments_service.create_comment(
        session,
        context.membership,
        context.task,
        content=comment_in.content,
    )
    await session.commit()
    await session.refresh(comment)
    return comment


@router.get("/tasks/{task_id}/attachments", response_model=List[AttachmentRead])
@translate_service_errors
async def list_task_attachments(session: SessionDep, context: TaskContextDep) -> List[TaskAttachment]:
    return await attachments_service.list_attachments(session, context.membership, context.task)


@router.post("/tasks/{task_id}/attachments", response_model=AttachmentRead, status_code=status.HTTP_201_CREATED)
@translate_service_errors
async def upload_task_attachment(
    session: SessionDep,
    context: TaskContextDep,
    file: UploadFile = File(...),
) -> TaskAttachment:
    contents = await file.read()
    attachment = await attachments_service.upload_attachment(
        session,
        context.membership,
        context.task,
        original_name=file.filename,
        content_type=file.content_type,
        contents=contents,
    )
    stored_file = attachment.filename
    try:
        await session.commit()
    except Exception:
        attachments_service.remove_stored_file(stored_file)
        raise
    await session.refresh(attachment)
    return attachment


@router.delete("/tasks/{task_id}/attachments/{attachment_id}", status_code=status.HTTP_204_NO_CONTENT)
@translate_service_errors
async def delete_task_attachment(
    attachment_id: int,
    session: SessionDep,
    context: TaskContextDep,
) -> Response:
    filename = await attachments_service.delete_attachment(
        session, context.membership, context.task, attachment_id=attachment_id
    )
    await session.commit()
    attachments_service.remove_stored_file(filename)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
