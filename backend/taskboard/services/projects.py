from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import func
from sqlmodel import delete, select
from sqlmodel.ext.asyncio.session import AsyncSession

from taskboard.core.errors import NotFound, ValidationFailed
from taskboard.core.messages import ProjectMessages
from taskboard.models.comment import Comment
from taskboard.models.invite import ProjectInvite
from taskboard.models.project import MemberPermission, Project, ProjectMember, ProjectRole
from taskboard.models.task import Task, TaskAttachment
from taskboard.models.task_status import TaskStatus
from taskboard.models.user import User
from taskboard.services import task_statuses as task_statuses_service
from taskboard.services.permissions import MembershipContext, can_manage_project, ensure_allowed, require_role

logger = logging.getLogger(__name__)


class ProjectNotFound(NotFound):
    kind = "project_not_found"
    default_message = ProjectMessages.NOT_FOUND


class ProjectValidationError(ValidationFailed):
    kind = "invalid_project"


@dataclass
class ProjectOverview:
    project: Project
    my_role: ProjectRole
    members_count: int
    tasks_count: int


def _clean_name(name: str | None) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ProjectValidationError(ProjectMessages.NAME_REQUIRED)
    return cleaned


async def get_project(session: AsyncSession, project_id: int) -> Project:
    project = await session.get(Project, project_id)
    if project is None:
        raise ProjectNotFound()
    return project


async def create_project(
    session: AsyncSession,
    *,
    owner: User,
    name: str,
    description: str | None = None,
) -> Project:
    project = Project(name=_clean_name(name), description=description, owner_id=owner.id)
    session.add(project)
    await session.flush()

    session.add(ProjectMember(project_id=project.id, user_id=owner.id, role=ProjectRole.owner))
    await task_statuses_service.create_default_statuses(session, project.id)
    await session.flush()
    logger.info("User %s created project %s", owner.id, project.id)
    return project


async def _count_by_project(session: AsyncSession, column, project_ids: list[int]) -> dict[int, int]:
    if not project_ids:
        return {}
    stmt = (
        select(column, func.count())
        .where(column.in_(project_ids))
        .group_by(column)
    )
    result = await session.exec(stmt)
    return {project_id: count for project_id, count in result.all()}


async def list_projects_for_user(session: AsyncSession, user: User) -> list[ProjectOverview]:
    memberships_result = await session.exec(select(ProjectMember).where(ProjectMember.user_id == user.id))
    roles = {member.project_id: member.role for member in memberships_result.all()}

    stmt = select(Project).order_by(Project.created_at.desc(), Project.id.desc())
    if not user.is_global_admin:
        if not roles:
            return []
        stmt = stmt.where(Project.id.in_(list(roles)))
    projects = list((await session.exec(stmt)).all())

    project_ids = [project.id for project in projects]
    members_counts = await _count_by_project(session, ProjectMember.project_id, project_ids)
    tasks_counts = await _count_by_project(session, Task.project_id, project_ids)

    return [
        ProjectOverview(
            project=project,
            my_role=roles.get(project.id, ProjectRole.admin),
            members_count=members_counts.get(project.id, 0),
            tasks_count=tasks_counts.get(project.id, 0),
        )
        for project in projects
    ]


async def update_project(
    session: AsyncSession,
    ctx: MembershipContext,
    project: Project,
    *,
    changes: dict,
) -> Project:
    ensure_allowed(can_manage_project(ctx))
    if "name" in changes:
        project.name = _clean_name(changes["name"])
    if "description" in changes:
        project.description = changes["description"]
    project.updated_at = datetime.now(timezone.utc)
    session.add(project)
    await session.flush()
    return project


async def delete_project(session: AsyncSession, ctx: MembershipContext, project: Project) -> list[str]:
    ensure_allowed(require_role(ctx, (ProjectRole.owner,)))
    project_id = project.id

    task_ids = select(Task.id).where(Task.project_id == project_id)
    member_ids = select(ProjectMember.id).where(ProjectMember.project_id == project_id)

    attachments_result = await session.exec(
        select(TaskAttachment).where(TaskAttachment.task_id.in_(task_ids))
    )
    stored_files = [attachment.filename for attachment in attachments_result.all()]

    await session.exec(delete(Comment).where(Comment.task_id.in_(task_ids)))
    await session.exec(delete(TaskAttachment).where(TaskAttachment.task_id.in_(task_ids)))
    await session.exec(delete(Task).where(Task.project_id == project_id))
    await session.exec(delete(ProjectInvite).where(ProjectInvite.project_id == project_id))
    await session.exec(delete(MemberPermission).where(MemberPermission.member_id.in_(member_ids)))
    await session.exec(delete(ProjectMember).where(ProjectMember.project_id == project_id))
    await session.exec(delete(TaskStatus).where(TaskStatus.project_id == project_id))
    await session.delete(project)
    await session.flush()
    logger.info("User %s deleted project %s", ctx.user_id, project_id)
    return stored_files
