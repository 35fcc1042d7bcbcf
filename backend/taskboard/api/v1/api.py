from fastapi import APIRouter

from taskboard.api.v1.endpoints import auth, comments, invites, projects, task_statuses, tasks, users

api_router = APIRouter()
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(projects.router, prefix="/projects", tags=["projects"])
api_router.include_router(task_statuses.router, tags=["task-statuses"])
api_router.include_router(tasks.router, tags=["tasks"])
api_router.include_router(comments.router, prefix="/comments", tags=["comments"])
api_router.include_router(invites.router, tags=["invites"])
