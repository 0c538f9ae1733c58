"""PostgreSQL implementation of UserRepository."""

import json
from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

import asyncpg

from projectdesk.adapters.db.app_db import AppDatabase
from projectdesk.core.errors import ConflictError, NotFoundError
from projectdesk.core.identity.types import GlobalRole, User

_COLUMNS = "id, email, username, full_name, password_hash, is_email_verified, role, created_at"


def _escape_like(query: str) -> str:
    return query.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class PostgresUserRepository:
    """PostgreSQL implementation of the identity store."""

    def __init__(self, db: AppDatabase) -> None:
        """Initialize with database connection.

        Args:
            db: Application database instance.
        """
        self._db = db

    def _row_to_user(self, row: dict[str, Any]) -> User:
        """Convert database row to User model."""
        return User(
            id=row["id"],
            email=row["email"],
            username=row["username"],
            full_name=row["full_name"],
            password_hash=row.get("password_hash"),
            is_email_verified=row.get("is_email_verified", False),
            role=GlobalRole(row.get("role") or GlobalRole.USER.value),
            created_at=row["created_at"],
        )

    async def get_by_id(self, user_id: UUID) -> User | None:
        """Get user by ID."""
        row = await self._db.fetch_one(f"SELECT {_COLUMNS} FROM users WHERE id = $1", user_id)
        return self._row_to_user(row) if row else None

    async def get_by_email(self, email: str) -> User | None:
        """Get user by email address."""
        row = await self._db.fetch_one(
            f"SELECT {_COLUMNS} FROM users WHERE email = $1",
            email.strip().lower(),
        )
        return self._row_to_user(row) if row else None

    async def get_by_username(self, username: str) -> User | None:
        """Get user by username."""
        row = await self._db.fetch_one(
            f"SELECT {_COLUMNS} FROM users WHERE username = $1",
            username.strip(),
        )
        return self._row_to_user(row) if row else None

    async def get_many(self, user_ids: list[UUID]) -> dict[UUID, User]:
        """Get several users keyed by ID."""
        if not user_ids:
            return {}
        rows = await self._db.fetch_all(
            f"SELECT {_COLUMNS} FROM users WHERE id = ANY($1::uuid[])",
            list(set(user_ids)),
        )
        users = [self._row_to_user(row) for row in rows]
        return {user.id: user for user in users}

    async def create(
        self,
        email: str,
        username: str,
        full_name: str,
        password_hash: str | None = None,
        role: GlobalRole | None = None,
    ) -> User:
        """Create a new user."""
        try:
            row = await self._db.execute_returning(
                f"""
                INSERT INTO users (id, email, username, full_name, password_hash, role, created_at)
                VALUES ($1, $2, $3, $4, $5, $6, $7)
                RETURNING {_COLUMNS}
                """,
                uuid4(),
                email.strip().lower(),
                username.strip(),
                full_name,
                password_hash,
                (role or GlobalRole.USER).value,
                datetime.now(UTC),
            )
        except asyncpg.UniqueViolationError:
            raise ConflictError("A user with this email or username already exists") from None
        assert row is not None, "INSERT RETURNING should always return a row"
        return self._row_to_user(row)

    async def search(self, query: str, exclude: list[UUID], limit: int) -> list[User]:
        """Case-insensitive substring search over full name, username and email."""
        pattern = f"%{_escape_like(query)}%"
        rows = await self._db.fetch_all(
            f"""
            SELECT {_COLUMNS} FROM users
            WHERE NOT (id = ANY($2::uuid[]))
              AND (full_name ILIKE $1 OR username ILIKE $1 OR email ILIKE $1)
            ORDER BY full_name
            LIMIT $3
            """,
            pattern,
            list(exclude),
            limit,
        )
        return [self._row_to_user(row) for row in rows]

    async def list_all(self) -> list[User]:
        """List every user, oldest first."""
        rows = await self._db.fetch_all(f"SELECT {_COLUMNS} FROM users ORDER BY created_at")
        return [self._row_to_user(row) for row in rows]

    async def update(self, user: User) -> User:
        """Persist a changed user record."""
        try:
            row = await self._db.execute_returning(
                f"""
                UPDATE users
                SET email = $2, username = $3, full_name = $4, password_hash = $5,
                    is_email_verified = $6, role = $7
                WHERE id = $1
                RETURNING {_COLUMNS}
                """,
                user.id,
                user.email,
                user.username,
                user.full_name,
                user.password_hash,
                user.is_email_verified,
                user.role.value,
            )
        except asyncpg.UniqueViolationError:
            raise ConflictError("A user with this email or username already exists") from None
        if row is None:
            raise NotFoundError("User not found")
        return self._row_to_user(row)

    async def delete(self, user_id: UUID) -> bool:
        """Delete a user that nothing references.

        Foreign keys cover creators, approvers and invite parties; embedded
        members, assignees, submissions and comments are checked in JSONB.
        """
        ref = json.dumps([{"user": str(user_id)}])
        row = await self._db.fetch_one(
            """
            WITH embedded AS (
                SELECT 1 FROM projects WHERE $1 = ANY(member_ids)
                UNION ALL
                SELECT 1 FROM tasks
                WHERE assigned_to @> $2::jsonb OR submissions @> $2::jsonb OR comments @> $2::jsonb
            )
            SELECT EXISTS (SELECT 1 FROM users WHERE id = $1) AS found,
                   EXISTS (SELECT 1 FROM embedded) AS referenced
            """,
            user_id,
            ref,
        )
        assert row is not None, "SELECT EXISTS should always return a row"
        if not row["found"]:
            return False
        if row["referenced"]:
            raise ConflictError("User is still referenced by projects, invites or tasks")

        try:
            await self._db.execute("DELETE FROM users WHERE id = $1", user_id)
        except asyncpg.ForeignKeyViolationError:
            raise ConflictError("User is still referenced by projects, invites or tasks") from None
        return True
