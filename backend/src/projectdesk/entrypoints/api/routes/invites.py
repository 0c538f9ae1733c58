"""Invite routes.

``GET /invites/{invite_id}`` is public so the invite link can be previewed
before signing in; it only exposes names, role and status.
"""

from __future__ import annotations

import logging
from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, status
from pydantic import BaseModel

from projectdesk.core.invites import Invite, InviteStatus
from projectdesk.core.rbac import ProjectRole
from projectdesk.entrypoints.api.deps import CallerDep, InviteServiceDep
from projectdesk.entrypoints.api.routes.projects import ProjectResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/invites", tags=["invites"])


class InviteCreate(BaseModel):
    """Send invite request."""

    project_id: UUID
    email: str
    role: ProjectRole = ProjectRole.VIEWER


class InviteRespond(BaseModel):
    """Answer to an invite: ``accept`` or ``decline``."""

    action: str


class InviteResponse(BaseModel):
    """Invite response."""

    id: UUID
    project_id: UUID
    sender_id: UUID
    recipient_id: UUID
    role: ProjectRole
    status: InviteStatus
    created_at: datetime
    responded_at: datetime | None = None

    @classmethod
    def from_invite(cls, invite: Invite) -> InviteResponse:
        """Build from a domain invite."""
        return cls(
            id=invite.id,
            project_id=invite.project_id,
            sender_id=invite.sender_id,
            recipient_id=invite.recipient_id,
            role=invite.role,
            status=invite.status,
            created_at=invite.created_at,
            responded_at=invite.responded_at,
        )


class InviteListItem(InviteResponse):
    """Invite with the project and sender names."""

    project_name: str
    sender_name: str
    sender_email: str


class InviteListResponse(BaseModel):
    """Response for listing invites."""

    invites: list[InviteListItem]
    total: int


class InviteDetailsResponse(BaseModel):
    """Public invite preview."""

    id: UUID
    project_name: str
    role: ProjectRole
    sender_name: str
    recipient_name: str
    status: InviteStatus


class InviteAnswerResponse(BaseModel):
    """Result of answering an invite."""

    invite: InviteResponse
    project: ProjectResponse | None = None


@router.post("", response_model=InviteResponse, status_code=status.HTTP_201_CREATED)
async def send_invite(body: InviteCreate, caller: CallerDep, service: InviteServiceDep) -> InviteResponse:
    """Invite a registered user to a project by email."""
    invite = await service.send_invite(caller.user_id, body.project_id, body.email, body.role)
    return InviteResponse.from_invite(invite)


@router.get("", response_model=InviteListResponse)
async def list_invites(caller: CallerDep, service: InviteServiceDep) -> InviteListResponse:
    """List invites addressed to the caller."""
    summaries = await service.list_invites_for_user(caller.user_id)
    items = [
        InviteListItem(
            **InviteResponse.from_invite(s.invite).model_dump(),
            project_name=s.project_name,
            sender_name=s.sender_name,
            sender_email=s.sender_email,
        )
        for s in summaries
    ]
    return InviteListResponse(invites=items, total=len(items))


@router.get("/{invite_id}", response_model=InviteDetailsResponse)
async def get_invite_details(invite_id: UUID, service: InviteServiceDep) -> InviteDetailsResponse:
    """Preview an invite; no authentication required."""
    details = await service.get_invite_details(invite_id)
    return InviteDetailsResponse(
        id=details.id,
        project_name=details.project_name,
        role=details.role,
        sender_name=details.sender_name,
        recipient_name=details.recipient_name,
        status=details.status,
    )


@router.post("/{invite_id}/respond", response_model=InviteAnswerResponse)
async def respond_to_invite(
    invite_id: UUID,
    body: InviteRespond,
    caller: CallerDep,
    service: InviteServiceDep,
) -> InviteAnswerResponse:
    """Accept or decline an invite addressed to the caller."""
    invite, project = await service.respond_to_invite(caller.user_id, invite_id, body.action)
    logger.info(f"invite_answered: invite_id={invite_id}, status={invite.status.value}")
    return InviteAnswerResponse(
        invite=InviteResponse.from_invite(invite),
        project=ProjectResponse.from_project(project) if project else None,
    )
