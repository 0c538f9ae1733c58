"""PostgreSQL implementation of InviteRepository."""

from typing import Any
from uuid import UUID

import asyncpg

from projectdesk.adapters.db.app_db import AppDatabase
from projectdesk.core.errors import ConflictError, StaleAggregateError
from projectdesk.core.invites.types import Invite, InviteStatus
from projectdesk.core.rbac.types import ProjectRole

_COLUMNS = "id, project_id, sender_id, recipient_id, role, status, created_at, responded_at"


class PostgresInviteRepository:
    """PostgreSQL implementation of invite persistence.

    A partial unique index enforces one Pending invite per project and recipient.
    """

    def __init__(self, db: AppDatabase) -> None:
        """Initialize with database connection."""
        self._db = db

    def _row_to_invite(self, row: dict[str, Any]) -> Invite:
        """Convert database row to Invite."""
        return Invite(
            id=row["id"],
            project_id=row["project_id"],
            sender_id=row["sender_id"],
            recipient_id=row["recipient_id"],
            role=ProjectRole(row["role"]),
            status=InviteStatus(row["status"]),
            created_at=row["created_at"],
            responded_at=row.get("responded_at"),
        )

    async def add(self, invite: Invite) -> Invite:
        """Insert a new invite."""
        try:
            row = await self._db.execute_returning(
                f"""
                INSERT INTO invites (id, project_id, sender_id, recipient_id, role, status, created_at)
                VALUES ($1, $2, $3, $4, $5, $6, $7)
                RETURNING {_COLUMNS}
                """,
                invite.id,
                invite.project_id,
                invite.sender_id,
                invite.recipient_id,
                invite.role.value,
                invite.status.value,
                invite.created_at,
            )
        except asyncpg.UniqueViolationError:
            raise ConflictError("User already has a pending invite to this project") from None
        assert row is not None, "INSERT RETURNING should always return a row"
        return self._row_to_invite(row)

    async def get(self, invite_id: UUID) -> Invite | None:
        """Load an invite."""
        row = await self._db.fetch_one(f"SELECT {_COLUMNS} FROM invites WHERE id = $1", invite_id)
        return self._row_to_invite(row) if row else None

    async def find_pending(self, project_id: UUID, recipient_id: UUID) -> Invite | None:
        """Find the Pending invite for a project and recipient."""
        row = await self._db.fetch_one(
            f"""
            SELECT {_COLUMNS} FROM invites
            WHERE project_id = $1 AND recipient_id = $2 AND status = 'Pending'
            """,
            project_id,
            recipient_id,
        )
        return self._row_to_invite(row) if row else None

    async def list_for_recipient(self, recipient_id: UUID) -> list[Invite]:
        """List invites addressed to a user, newest first."""
        rows = await self._db.fetch_all(
            f"SELECT {_COLUMNS} FROM invites WHERE recipient_id = $1 ORDER BY created_at DESC",
            recipient_id,
        )
        return [self._row_to_invite(row) for row in rows]

    async def save(self, invite: Invite) -> Invite:
        """Record the response to a Pending invite."""
        row = await self._db.execute_returning(
            f"""
            UPDATE invites SET status = $2, responded_at = $3
            WHERE id = $1 AND status = 'Pending'
            RETURNING {_COLUMNS}
            """,
            invite.id,
            invite.status.value,
            invite.responded_at,
        )
        if row is None:
            raise StaleAggregateError("Invite", invite.id)
        return self._row_to_invite(row)

    async def reopen(self, invite: Invite) -> Invite:
        """Put an Accepted invite back to Pending."""
        try:
            row = await self._db.execute_returning(
                f"""
                UPDATE invites SET status = 'Pending', responded_at = NULL
                WHERE id = $1 AND status = 'Accepted'
                RETURNING {_COLUMNS}
                """,
                invite.id,
            )
        except asyncpg.UniqueViolationError:
            raise ConflictError("User already has a pending invite to this project") from None
        if row is None:
            raise StaleAggregateError("Invite", invite.id)
        return self._row_to_invite(row)

    async def delete_for_project(self, project_id: UUID) -> int:
        """Delete every invite of a project."""
        result = await self._db.execute("DELETE FROM invites WHERE project_id = $1", project_id)
        return int(result.split()[-1]) if result else 0
