"""FastAPI application definition."""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from projectdesk import __version__
from projectdesk.core.errors import ProjectDeskError, UnauthenticatedError

from .deps import lifespan
from .routes import api_router


async def handle_projectdesk_error(request: Request, exc: ProjectDeskError) -> JSONResponse:
    """Render an operation failure as ``{"error": kind, "message": ...}``."""
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, UnauthenticatedError) else None
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


def create_app() -> FastAPI:
    """Build the application with routes, CORS and error handling."""
    application = FastAPI(
        title="projectdesk",
        description="Project collaboration: members, invites and task approval",
        version=__version__,
        lifespan=lifespan,
        redirect_slashes=False,  # Prevent 307 redirects that lose auth headers
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.add_exception_handler(ProjectDeskError, handle_projectdesk_error)  # type: ignore[arg-type]
    application.include_router(api_router, prefix="/api/v1")

    @application.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy"}

    return application


app = create_app()
