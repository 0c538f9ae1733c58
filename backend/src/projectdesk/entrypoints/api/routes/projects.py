"""Project and membership routes."""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Response, status
from pydantic import BaseModel, Field

from projectdesk.core.identity import UserSummary
from projectdesk.core.normalize import normalize_members
from projectdesk.core.projects import Project, ProjectChanges, ProjectPriority, ProjectStatus
from projectdesk.core.rbac import ProjectRole
from projectdesk.entrypoints.api.deps import CallerDep, ProjectServiceDep
from projectdesk.entrypoints.api.routes.users import UserSummaryResponse
from projectdesk.services import ProjectService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/projects", tags=["projects"])


class ProjectCreate(BaseModel):
    """Project creation request.

    ``members`` entries may be a user id or an object with ``user``,
    ``user_id`` or ``userId`` and an optional ``role``.
    """

    name: str = Field("", max_length=200)
    description: str = ""
    start_date: date | None = None
    due_date: date | None = None
    status: ProjectStatus | None = None
    priority: ProjectPriority | None = None
    members: list[Any] = Field(default_factory=list)


class ProjectUpdate(BaseModel):
    """Project update request; omitted fields are left unchanged."""

    name: str | None = None
    description: str | None = None
    start_date: date | None = None
    due_date: date | None = None
    status: ProjectStatus | None = None
    priority: ProjectPriority | None = None
    members: list[Any] | None = None


class MemberAdd(BaseModel):
    """Add member request."""

    user_id: UUID
    role: ProjectRole = ProjectRole.MEMBER


class MemberRoleUpdate(BaseModel):
    """Change member role request."""

    role: ProjectRole


class MemberResponse(BaseModel):
    """A project member with the user's public details."""

    user_id: UUID
    role: ProjectRole
    added_at: datetime
    user: UserSummaryResponse | None = None


class ProjectResponse(BaseModel):
    """Project response."""

    id: UUID
    name: str
    description: str
    created_by: UUID
    start_date: date | None
    due_date: date | None
    status: ProjectStatus
    priority: ProjectPriority
    members: list[MemberResponse]
    created_at: datetime
    updated_at: datetime
    version: int

    @classmethod
    def from_project(
        cls, project: Project, directory: dict[UUID, UserSummary] | None = None
    ) -> ProjectResponse:
        """Build from a domain project, embedding member details when known."""
        directory = directory or {}
        members = []
        for member in project.members:
            summary = directory.get(member.user_id)
            members.append(
                MemberResponse(
                    user_id=member.user_id,
                    role=member.role,
                    added_at=member.added_at,
                    user=UserSummaryResponse.from_summary(summary) if summary else None,
                )
            )
        return cls(
            id=project.id,
            name=project.name,
            description=project.description,
            created_by=project.created_by,
            start_date=project.start_date,
            due_date=project.due_date,
            status=project.status,
            priority=project.priority,
            members=members,
            created_at=project.created_at,
            updated_at=project.updated_at,
            version=project.version,
        )


class ProjectListResponse(BaseModel):
    """Response for listing projects."""

    projects: list[ProjectResponse]
    total: int


async def _respond(service: ProjectService, project: Project) -> ProjectResponse:
    directory = await service.member_directory([project])
    return ProjectResponse.from_project(project, directory)


@router.post("", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
async def create_project(
    body: ProjectCreate,
    caller: CallerDep,
    service: ProjectServiceDep,
) -> ProjectResponse:
    """Create a project owned by the caller."""
    project = await service.create_project(
        caller.user_id,
        name=body.name,
        due_date=body.due_date,
        description=body.description,
        start_date=body.start_date,
        status=body.status,
        priority=body.priority,
        members=normalize_members(body.members),
    )
    logger.info(f"project_created: project_id={project.id}")
    return await _respond(service, project)


@router.get("", response_model=ProjectListResponse)
async def list_projects(caller: CallerDep, service: ProjectServiceDep) -> ProjectListResponse:
    """List projects the caller created or belongs to."""
    projects = await service.list_projects_for_user(caller.user_id)
    directory = await service.member_directory(projects)
    return ProjectListResponse(
        projects=[ProjectResponse.from_project(p, directory) for p in projects],
        total=len(projects),
    )


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(project_id: UUID, caller: CallerDep, service: ProjectServiceDep) -> ProjectResponse:
    """Get a project the caller belongs to."""
    project = await service.get_project(caller.user_id, project_id)
    return await _respond(service, project)


@router.put("/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_id: UUID,
    body: ProjectUpdate,
    caller: CallerDep,
    service: ProjectServiceDep,
) -> ProjectResponse:
    """Update project fields; replacing ``members`` requires the Owner."""
    changes = ProjectChanges(
        name=body.name,
        description=body.description,
        start_date=body.start_date,
        due_date=body.due_date,
        status=body.status,
        priority=body.priority,
        members=normalize_members(body.members) if body.members is not None else None,
    )
    project = await service.update_project(caller.user_id, project_id, changes)
    return await _respond(service, project)


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(project_id: UUID, caller: CallerDep, service: ProjectServiceDep) -> Response:
    """Delete a project with its tasks and invites (Owner only)."""
    await service.delete_project(caller.user_id, project_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{project_id}/members",
    response_model=ProjectResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_member(
    project_id: UUID,
    body: MemberAdd,
    caller: CallerDep,
    service: ProjectServiceDep,
) -> ProjectResponse:
    """Add an existing user to the project."""
    project = await service.add_member(caller.user_id, project_id, body.user_id, body.role)
    return await _respond(service, project)


@router.patch("/{project_id}/members/{user_id}", response_model=ProjectResponse)
async def change_member_role(
    project_id: UUID,
    user_id: UUID,
    body: MemberRoleUpdate,
    caller: CallerDep,
    service: ProjectServiceDep,
) -> ProjectResponse:
    """Change a member's role."""
    project = await service.change_member_role(caller.user_id, project_id, user_id, body.role)
    return await _respond(service, project)


@router.delete("/{project_id}/members/{user_id}", response_model=ProjectResponse)
async def remove_member(
    project_id: UUID,
    user_id: UUID,
    caller: CallerDep,
    service: ProjectServiceDep,
) -> ProjectResponse:
    """Remove a member from the project."""
    project = await service.remove_member(caller.user_id, project_id, user_id)
    return await _respond(service, project)
