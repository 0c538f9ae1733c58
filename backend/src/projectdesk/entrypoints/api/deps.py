"""Dependency injection and application lifespan management."""

from __future__ import annotations

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Annotated

import structlog
from fastapi import Depends, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from projectdesk.adapters.db import (
    AppDatabase,
    InMemoryInviteRepository,
    InMemoryProjectRepository,
    InMemoryStore,
    InMemoryTaskRepository,
    InMemoryUserRepository,
    PostgresInviteRepository,
    PostgresProjectRepository,
    PostgresTaskRepository,
    PostgresUserRepository,
)
from projectdesk.adapters.notifications import EmailConfig, EmailNotifier, LoggingNotifier
from projectdesk.adapters.storage import LocalAttachmentStore
from projectdesk.core.auth import JWTAuthenticator
from projectdesk.core.errors import UnauthenticatedError
from projectdesk.core.identity import Caller
from projectdesk.core.interfaces import Authenticator, NotificationDispatcher
from projectdesk.services import InviteService, ProjectService, TaskService, UserService

if TYPE_CHECKING:
    from fastapi import FastAPI

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


class Settings:
    """Application settings loaded from environment."""

    def __init__(self) -> None:
        """Load settings from environment variables."""
        self.storage = os.getenv("PROJECTDESK_STORAGE", "postgres").lower()
        self.database_url = os.getenv("DATABASE_URL", "postgresql://localhost:5432/projectdesk")
        self.jwt_secret_key = os.getenv("JWT_SECRET_KEY", "dev-secret-change-in-production")
        self.jwt_expire_minutes = int(os.getenv("JWT_EXPIRE_MINUTES", "60"))
        self.frontend_url = os.getenv("FRONTEND_URL", "http://localhost:3000")

        # Email; without SMTP_HOST invites are logged instead of sent
        self.smtp_host = os.getenv("SMTP_HOST", "")
        self.smtp_port = int(os.getenv("SMTP_PORT", "587"))
        self.smtp_user = os.getenv("SMTP_USER") or None
        self.smtp_password = os.getenv("SMTP_PASSWORD") or None
        self.email_from = os.getenv("EMAIL_FROM", "projectdesk@example.com")

        self.upload_dir = os.getenv("UPLOAD_DIR", "./uploads")
        self.upload_base_url = os.getenv("UPLOAD_BASE_URL", "http://localhost:8000/uploads")
        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()


settings = Settings()


def configure_logging(level: str = "INFO", json_logs: bool = False) -> None:
    """Configure structlog and the stdlib root logger."""
    logging.basicConfig(format="%(message)s", level=level)
    renderer = structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(level)),
        cache_logger_on_first_use=True,
    )


def build_notifier(config: Settings) -> NotificationDispatcher:
    """Pick the SMTP notifier when a host is configured, else the logging one."""
    if not config.smtp_host:
        return LoggingNotifier()
    return EmailNotifier(
        EmailConfig(
            smtp_host=config.smtp_host,
            smtp_port=config.smtp_port,
            smtp_user=config.smtp_user,
            smtp_password=config.smtp_password,
            from_email=config.email_from,
        )
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan - setup and teardown.

    This context manager handles:
    - Storage backend selection and schema setup
    - Authenticator, notifier and attachment store wiring
    """
    configure_logging(settings.log_level)

    app_db: AppDatabase | None = None
    if settings.storage == "memory":
        store = InMemoryStore()
        app.state.users = InMemoryUserRepository(store)
        app.state.projects = InMemoryProjectRepository(store)
        app.state.invites = InMemoryInviteRepository(store)
        app.state.tasks = InMemoryTaskRepository(store)
    else:
        app_db = AppDatabase(settings.database_url)
        await app_db.connect()
        await app_db.apply_schema()
        app.state.users = PostgresUserRepository(app_db)
        app.state.projects = PostgresProjectRepository(app_db)
        app.state.invites = PostgresInviteRepository(app_db)
        app.state.tasks = PostgresTaskRepository(app_db)

    app.state.app_db = app_db
    app.state.authenticator = JWTAuthenticator(
        settings.jwt_secret_key,
        expire_minutes=settings.jwt_expire_minutes,
    )
    app.state.notifier = build_notifier(settings)
    app.state.attachments = LocalAttachmentStore(settings.upload_dir, settings.upload_base_url)
    app.state.frontend_url = settings.frontend_url
    logger.info(f"projectdesk_started: storage={settings.storage}")

    yield

    if app_db is not None:
        await app_db.close()


def get_authenticator(request: Request) -> Authenticator:
    """Get the authenticator from app state."""
    authenticator: Authenticator = request.app.state.authenticator
    return authenticator


def get_caller(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Security(bearer_scheme),  # noqa: B008
) -> Caller:
    """Verify the bearer token and return the caller.

    Raises:
        UnauthenticatedError: If the token is missing or invalid.
    """
    token = credentials.credentials if credentials else None
    try:
        caller = get_authenticator(request).authenticate(token)
    except UnauthenticatedError as e:
        logger.warning(f"token_rejected: {e.message}")
        raise

    request.state.caller = caller
    return caller


def get_project_service(request: Request) -> ProjectService:
    """Build the project service over the configured repositories."""
    state = request.app.state
    return ProjectService(state.projects, state.invites, state.tasks, state.users)


def get_invite_service(request: Request) -> InviteService:
    """Build the invite service over the configured repositories."""
    state = request.app.state
    return InviteService(
        state.projects,
        state.invites,
        state.users,
        state.notifier,
        frontend_url=state.frontend_url,
    )


def get_task_service(request: Request) -> TaskService:
    """Build the task service over the configured repositories."""
    state = request.app.state
    return TaskService(state.projects, state.tasks, state.attachments)


def get_user_service(request: Request) -> UserService:
    """Build the user service over the configured repositories."""
    state = request.app.state
    return UserService(state.users, state.projects, state.authenticator)


CallerDep = Annotated[Caller, Depends(get_caller)]
ProjectServiceDep = Annotated[ProjectService, Depends(get_project_service)]
InviteServiceDep = Annotated[InviteService, Depends(get_invite_service)]
TaskServiceDep = Annotated[TaskService, Depends(get_task_service)]
UserServiceDep = Annotated[UserService, Depends(get_user_service)]
