"""Invite state machine.

``Pending --accept--> Accepted`` and ``Pending --decline--> Declined``. Both
targets are terminal.
"""

from datetime import UTC, datetime
from uuid import UUID, uuid4

from projectdesk.core.errors import (
    ForbiddenError,
    InvalidArgumentError,
    InvalidStateError,
    UnauthenticatedError,
)
from projectdesk.core.invites.types import Invite, InviteAction, InviteStatus
from projectdesk.core.rbac.types import GRANTABLE_ROLES, ProjectRole

_TRANSITIONS = {
    (InviteStatus.PENDING, InviteAction.ACCEPT): InviteStatus.ACCEPTED,
    (InviteStatus.PENDING, InviteAction.DECLINE): InviteStatus.DECLINED,
}


def parse_action(action: str | InviteAction) -> InviteAction:
    """Parse a response action.

    Raises:
        InvalidArgumentError: If the action is not accept or decline.
    """
    try:
        return InviteAction(str(action.value if isinstance(action, InviteAction) else action).lower())
    except ValueError:
        raise InvalidArgumentError("Action must be 'accept' or 'decline'") from None


def new_invite(
    project_id: UUID,
    sender_id: UUID,
    recipient_id: UUID,
    role: ProjectRole = ProjectRole.VIEWER,
    now: datetime | None = None,
) -> Invite:
    """Create a Pending invite.

    Raises:
        InvalidArgumentError: If ``role`` cannot be offered.
    """
    if role not in GRANTABLE_ROLES:
        raise InvalidArgumentError(f"Role {role.value} cannot be offered in an invite")
    return Invite(
        id=uuid4(),
        project_id=project_id,
        sender_id=sender_id,
        recipient_id=recipient_id,
        role=role,
        status=InviteStatus.PENDING,
        created_at=now or datetime.now(UTC),
    )


def respond(
    invite: Invite,
    actor_id: UUID | None,
    action: InviteAction,
    now: datetime | None = None,
) -> InviteStatus:
    """Apply the recipient's response to the invite.

    Validates before mutating: on any error the invite is untouched.

    Raises:
        UnauthenticatedError: If there is no caller.
        ForbiddenError: If the caller is not the recipient.
        InvalidStateError: If the invite has already been answered.
    """
    if actor_id is None:
        raise UnauthenticatedError("Authentication required")
    if invite.recipient_id != actor_id:
        raise ForbiddenError("You can only respond to your own invites")

    target = _TRANSITIONS.get((invite.status, action))
    if target is None:
        raise InvalidStateError(f"Invite has already been {invite.status.value.lower()}")

    invite.status = target
    invite.responded_at = now or datetime.now(UTC)
    return target
