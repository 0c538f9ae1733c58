"""API route modules."""

from fastapi import APIRouter

from projectdesk.entrypoints.api.routes.auth import router as auth_router
from projectdesk.entrypoints.api.routes.invites import router as invites_router
from projectdesk.entrypoints.api.routes.projects import router as projects_router
from projectdesk.entrypoints.api.routes.tasks import router as tasks_router
from projectdesk.entrypoints.api.routes.users import router as users_router

# Create main API router
api_router = APIRouter()

api_router.include_router(auth_router)
api_router.include_router(users_router)
api_router.include_router(projects_router)
api_router.include_router(invites_router)
api_router.include_router(tasks_router)

__all__ = ["api_router"]
