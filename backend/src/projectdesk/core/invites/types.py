"""Invite domain types."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from uuid import UUID

from projectdesk.core.rbac.types import ProjectRole


class InviteStatus(str, Enum):
    """Invite lifecycle states."""

    PENDING = "Pending"
    ACCEPTED = "Accepted"
    DECLINED = "Declined"

    @property
    def is_terminal(self) -> bool:
        """Whether no further transition is allowed."""
        return self is not InviteStatus.PENDING


class InviteAction(str, Enum):
    """Recipient responses."""

    ACCEPT = "accept"
    DECLINE = "decline"


@dataclass
class Invite:
    """An offer of project membership."""

    id: UUID
    project_id: UUID
    sender_id: UUID
    recipient_id: UUID
    role: ProjectRole
    status: InviteStatus
    created_at: datetime
    responded_at: datetime | None = None


@dataclass(frozen=True)
class InviteDetails:
    """Public preview of an invite, readable without logging in."""

    id: UUID
    project_name: str
    role: ProjectRole
    sender_name: str
    recipient_name: str
    status: InviteStatus


@dataclass(frozen=True)
class InviteSummary:
    """An invite as listed for its recipient."""

    invite: Invite
    project_name: str
    sender_name: str
    sender_email: str
