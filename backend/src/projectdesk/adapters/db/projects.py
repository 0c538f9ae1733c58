"""PostgreSQL implementation of ProjectRepository."""

import json
from datetime import datetime
from typing import Any
from uuid import UUID

import structlog

from projectdesk.adapters.db.app_db import AppDatabase
from projectdesk.core.errors import StaleAggregateError
from projectdesk.core.projects.types import Project, ProjectMember, ProjectPriority, ProjectStatus
from projectdesk.core.rbac.types import ProjectRole

logger = structlog.get_logger()

_COLUMNS = (
    "id, name, description, created_by, start_date, due_date, status, priority, "
    "members, created_at, updated_at, version"
)


def _members_to_json(members: list[ProjectMember]) -> str:
    return json.dumps(
        [
            {"user": str(m.user_id), "role": m.role.value, "added_at": m.added_at.isoformat()}
            for m in members
        ]
    )


def _members_from_json(value: Any) -> list[ProjectMember]:
    if isinstance(value, str):
        value = json.loads(value)
    return [
        ProjectMember(
            user_id=UUID(item["user"]),
            role=ProjectRole(item["role"]),
            added_at=datetime.fromisoformat(item["added_at"]),
        )
        for item in value or []
    ]


class PostgresProjectRepository:
    """Stores each project as one row; members live in a JSONB column.

    ``member_ids`` duplicates the member user IDs as a UUID array so that
    "projects for user" is an indexed lookup.
    """

    def __init__(self, db: AppDatabase) -> None:
        """Initialize with database connection."""
        self._db = db

    def _row_to_project(self, row: dict[str, Any]) -> Project:
        """Convert database row to Project."""
        return Project(
            id=row["id"],
            name=row["name"],
            description=row.get("description") or "",
            created_by=row["created_by"],
            start_date=row["start_date"],
            due_date=row["due_date"],
            status=ProjectStatus(row["status"]),
            priority=ProjectPriority(row["priority"]),
            members=_members_from_json(row["members"]),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            version=row["version"],
        )

    async def add(self, project: Project) -> Project:
        """Insert a new project."""
        row = await self._db.execute_returning(
            f"""
            INSERT INTO projects
                (id, name, description, created_by, start_date, due_date, status, priority,
                 members, member_ids, created_at, updated_at, version)
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9::jsonb, $10::uuid[], $11, $12, 1)
            RETURNING {_COLUMNS}
            """,
            project.id,
            project.name,
            project.description,
            project.created_by,
            project.start_date,
            project.due_date,
            project.status.value,
            project.priority.value,
            _members_to_json(project.members),
            project.member_ids,
            project.created_at,
            project.updated_at,
        )
        assert row is not None, "INSERT RETURNING should always return a row"
        return self._row_to_project(row)

    async def get(self, project_id: UUID) -> Project | None:
        """Load a project."""
        row = await self._db.fetch_one(f"SELECT {_COLUMNS} FROM projects WHERE id = $1", project_id)
        return self._row_to_project(row) if row else None

    async def list_for_member(self, user_id: UUID) -> list[Project]:
        """List projects the user created or belongs to, newest first."""
        rows = await self._db.fetch_all(
            f"""
            SELECT {_COLUMNS} FROM projects
            WHERE created_by = $1 OR $1 = ANY(member_ids)
            ORDER BY created_at DESC
            """,
            user_id,
        )
        return [self._row_to_project(row) for row in rows]

    async def save(self, project: Project) -> Project:
        """Persist a loaded project if nobody else wrote it in between."""
        row = await self._db.execute_returning(
            f"""
            UPDATE projects
            SET name = $3, description = $4, start_date = $5, due_date = $6,
                status = $7, priority = $8, members = $9::jsonb, member_ids = $10::uuid[],
                updated_at = $11, version = version + 1
            WHERE id = $1 AND version = $2
            RETURNING {_COLUMNS}
            """,
            project.id,
            project.version,
            project.name,
            project.description,
            project.start_date,
            project.due_date,
            project.status.value,
            project.priority.value,
            _members_to_json(project.members),
            project.member_ids,
            project.updated_at,
        )
        if row is None:
            logger.warning("project_save_conflict", project_id=str(project.id), version=project.version)
            raise StaleAggregateError("Project", project.id)
        return self._row_to_project(row)

    async def delete(self, project_id: UUID) -> bool:
        """Delete a project."""
        result = await self._db.execute("DELETE FROM projects WHERE id = $1", project_id)
        return result == "DELETE 1"
