"""PostgreSQL implementation of TaskRepository."""

import json
from datetime import datetime
from typing import Any
from uuid import UUID

import structlog

from projectdesk.adapters.db.app_db import AppDatabase
from projectdesk.core.errors import StaleAggregateError
from projectdesk.core.rbac.types import ProjectRole
from projectdesk.core.tasks.types import (
    Assignment,
    Attachment,
    Comment,
    Submission,
    Task,
    TaskPriority,
    TaskStatus,
)

logger = structlog.get_logger()

_COLUMNS = (
    "id, project_id, title, description, priority, status, assigned_to, attachments, "
    "submissions, comments, approved_by, start_date, due_date, created_by, completed_at, "
    "created_at, updated_at, version"
)


def _load(value: Any) -> list[dict[str, Any]]:
    if isinstance(value, str):
        value = json.loads(value)
    return list(value or [])


def _attachment_to_dict(attachment: Attachment) -> dict[str, Any]:
    return {
        "filename": attachment.filename,
        "url": attachment.url,
        "uploaded_at": attachment.uploaded_at.isoformat(),
    }


def _attachment_from_dict(item: dict[str, Any]) -> Attachment:
    return Attachment(
        filename=item["filename"],
        url=item["url"],
        uploaded_at=datetime.fromisoformat(item["uploaded_at"]),
    )


def _encode_collections(task: Task) -> tuple[str, str, str, str]:
    assigned_to = [{"user": str(a.user_id), "role": a.role.value} for a in task.assigned_to]
    attachments = [_attachment_to_dict(a) for a in task.attachments]
    submissions = [
        {
            "user": str(s.user_id),
            "notes": s.notes,
            "attachments": [_attachment_to_dict(a) for a in s.attachments],
            "created_at": s.created_at.isoformat(),
        }
        for s in task.submissions
    ]
    comments = [
        {"user": str(c.user_id), "message": c.message, "created_at": c.created_at.isoformat()}
        for c in task.comments
    ]
    return (
        json.dumps(assigned_to),
        json.dumps(attachments),
        json.dumps(submissions),
        json.dumps(comments),
    )


class PostgresTaskRepository:
    """Stores each task as one row with JSONB sub-collections."""

    def __init__(self, db: AppDatabase) -> None:
        """Initialize with database connection."""
        self._db = db

    def _row_to_task(self, row: dict[str, Any]) -> Task:
        """Convert database row to Task."""
        return Task(
            id=row["id"],
            project_id=row["project_id"],
            title=row["title"],
            description=row.get("description") or "",
            priority=TaskPriority(row["priority"]),
            status=TaskStatus(row["status"]),
            created_by=row["created_by"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            assigned_to=[
                Assignment(user_id=UUID(item["user"]), role=ProjectRole(item["role"]))
                for item in _load(row["assigned_to"])
            ],
            attachments=[_attachment_from_dict(item) for item in _load(row["attachments"])],
            submissions=[
                Submission(
                    user_id=UUID(item["user"]),
                    notes=item.get("notes", ""),
                    attachments=tuple(_attachment_from_dict(a) for a in item.get("attachments", [])),
                    created_at=datetime.fromisoformat(item["created_at"]),
                )
                for item in _load(row["submissions"])
            ],
            comments=[
                Comment(
                    user_id=UUID(item["user"]),
                    message=item["message"],
                    created_at=datetime.fromisoformat(item["created_at"]),
                )
                for item in _load(row["comments"])
            ],
            approved_by=row.get("approved_by"),
            start_date=row.get("start_date"),
            due_date=row.get("due_date"),
            completed_at=row.get("completed_at"),
            version=row["version"],
        )

    async def add(self, task: Task) -> Task:
        """Insert a new task."""
        assigned_to, attachments, submissions, comments = _encode_collections(task)
        row = await self._db.execute_returning(
            f"""
            INSERT INTO tasks
                (id, project_id, title, description, priority, status, assigned_to, attachments,
                 submissions, comments, approved_by, start_date, due_date, created_by,
                 completed_at, created_at, updated_at, version)
            VALUES ($1, $2, $3, $4, $5, $6, $7::jsonb, $8::jsonb, $9::jsonb, $10::jsonb,
                    $11, $12, $13, $14, $15, $16, $17, 1)
            RETURNING {_COLUMNS}
            """,
            task.id,
            task.project_id,
            task.title,
            task.description,
            task.priority.value,
            task.status.value,
            assigned_to,
            attachments,
            submissions,
            comments,
            task.approved_by,
            task.start_date,
            task.due_date,
            task.created_by,
            task.completed_at,
            task.created_at,
            task.updated_at,
        )
        assert row is not None, "INSERT RETURNING should always return a row"
        return self._row_to_task(row)

    async def get(self, task_id: UUID) -> Task | None:
        """Load a task."""
        row = await self._db.fetch_one(f"SELECT {_COLUMNS} FROM tasks WHERE id = $1", task_id)
        return self._row_to_task(row) if row else None

    async def list_for_project(self, project_id: UUID) -> list[Task]:
        """List a project's tasks, newest first."""
        rows = await self._db.fetch_all(
            f"SELECT {_COLUMNS} FROM tasks WHERE project_id = $1 ORDER BY created_at DESC",
            project_id,
        )
        return [self._row_to_task(row) for row in rows]

    async def save(self, task: Task) -> Task:
        """Persist a loaded task if nobody else wrote it in between."""
        assigned_to, attachments, submissions, comments = _encode_collections(task)
        row = await self._db.execute_returning(
            f"""
            UPDATE tasks
            SET title = $3, description = $4, priority = $5, status = $6,
                assigned_to = $7::jsonb, attachments = $8::jsonb, submissions = $9::jsonb,
                comments = $10::jsonb, approved_by = $11, start_date = $12, due_date = $13,
                completed_at = $14, updated_at = $15, version = version + 1
            WHERE id = $1 AND version = $2
            RETURNING {_COLUMNS}
            """,
            task.id,
            task.version,
            task.title,
            task.description,
            task.priority.value,
            task.status.value,
            assigned_to,
            attachments,
            submissions,
            comments,
            task.approved_by,
            task.start_date,
            task.due_date,
            task.completed_at,
            task.updated_at,
        )
        if row is None:
            logger.warning("task_save_conflict", task_id=str(task.id), version=task.version)
            raise StaleAggregateError("Task", task.id)
        return self._row_to_task(row)

    async def delete(self, task_id: UUID) -> bool:
        """Delete a task."""
        result = await self._db.execute("DELETE FROM tasks WHERE id = $1", task_id)
        return result == "DELETE 1"

    async def delete_for_project(self, project_id: UUID) -> int:
        """Delete every task of a project."""
        result = await self._db.execute("DELETE FROM tasks WHERE project_id = $1", project_id)
        return int(result.split()[-1]) if result else 0
