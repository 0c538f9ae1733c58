"""Invite protocol domain."""

from projectdesk.core.invites.protocol import new_invite, parse_action, respond
from projectdesk.core.invites.types import (
    Invite,
    InviteAction,
    InviteDetails,
    InviteStatus,
    InviteSummary,
)

__all__ = [
    "Invite",
    "InviteAction",
    "InviteDetails",
    "InviteStatus",
    "InviteSummary",
    "new_invite",
    "parse_action",
    "respond",
]
