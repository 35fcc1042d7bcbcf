from typing import List

from fastapi import APIRouter, Response, status

from taskboard.api.deps import ProjectContext, SessionDep
from taskboard.api.errors import translate_service_errors
from taskboard.models.task_status import TaskStatus
from taskboard.schemas.task_status import (
    StatusGrantRead,
    TaskStatusCreate,
    TaskStatusRead,
    TaskStatusReorderRequest,
    TaskStatusUpdate,
    TaskStatusWithGrants,
)
from taskboard.services import task_statuses as task_statuses_service
from taskboard.services.permissions import status_grants

router = APIRouter(prefix="/projects/{project_id}/task-statuses")


@router.get("/", response_model=List[TaskStatusWithGrants])
async def list_task_statuses(
    project_id: int,
    session: SessionDep,
    membership: ProjectContext,
) -> List[TaskStatusWithGrants]:
    statuses = await task_statuses_service.list_statuses(session, project_id)
    grants = status_grants(membership, statuses)
    return [
        TaskStatusWithGrants(
            **TaskStatusRead.model_validate(item).model_dump(),
            permissions=StatusGrantRead(**grants[item.id].as_dict()),
        )
        for item in statuses
    ]


@router.post("/", response_model=TaskStatusRead, status_code=status.HTTP_201_CREATED)
@translate_service_errors
async def create_task_status(
    project_id: int,
    status_in: TaskStatusCreate,
    session: SessionDep,
    membership: ProjectContext,
) -> TaskStatus:
    status_obj = await task_statuses_service.create_status(
        session,
        membership,
        title=status_in.title,
        slug=status_in.slug,
        color=status_in.color,
        icon=status_in.icon,
    )
    await session.commit()
    await session.refresh(status_obj)
    return status_obj


@router.post("/reorder", response_model=List[TaskStatusRead])
@translate_service_errors
async def reorder_task_statuses(
    project_id: int,
    reorder_in: TaskStatusReorderRequest,
    session: SessionDep,
    membership: ProjectContext,
) -> List[TaskStatus]:
    statuses = await task_statuses_service.reorder_statuses(session, membership, ordered_ids=reorder_in.status_ids)
    await session.commit()
    return statuses


@router.patch("/{status_id}", response_model=TaskStatusRead)
@translate_service_errors
async def update_task_status(
    project_id: int,
    status_id: int,
    status_in: TaskStatusUpdate,
    session: SessionDep,
    membership: ProjectContext,
) -> TaskStatus:
    status_obj = await task_statuses_service.update_status(
        session,
        membership,
        status_id=status_id,
        changes=status_in.model_dump(exclude_unset=True),
    )
    await session.commit()
    await session.refresh(status_obj)
    return status_obj


@router.delete("/{status_id}", status_code=status.HTTP_204_NO_CONTENT)
@translate_service_errors
async def delete_task_status(
    project_id: int,
    status_id: int,
    session: SessionDep,
    membership: ProjectContext,
) -> Response:
    await task_statuses_service.delete_status(session, membership, status_id=status_id)
    await session.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
