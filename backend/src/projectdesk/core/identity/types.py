"""Identity domain types."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from uuid import UUID


class GlobalRole(str, Enum):
    """Site-wide role, distinct from any project role."""

    ADMIN = "Admin"
    USER = "User"


@dataclass
class User:
    """A registered user."""

    id: UUID
    email: str
    username: str
    full_name: str
    password_hash: str | None
    is_email_verified: bool
    role: GlobalRole
    created_at: datetime


@dataclass
class ProfileChanges:
    """Profile fields to change; None leaves a field as it is."""

    full_name: str | None = None
    username: str | None = None
    email: str | None = None
    password: str | None = None


@dataclass(frozen=True)
class Caller:
    """Identity of the caller as established by the Authenticator."""

    user_id: UUID
    role: GlobalRole = GlobalRole.USER


@dataclass(frozen=True)
class UserSummary:
    """Public view of a user, safe to embed in other responses."""

    id: UUID
    username: str
    full_name: str
    email: str

    @classmethod
    def from_user(cls, user: User) -> "UserSummary":
        """Build a summary from a full user record."""
        return cls(id=user.id, username=user.username, full_name=user.full_name, email=user.email)
