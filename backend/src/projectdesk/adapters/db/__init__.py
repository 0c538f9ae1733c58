"""Application database adapters.

Contents:
- app_db: asyncpg pool wrapper with read retry and write fault mapping
- users, projects, invites, tasks: PostgreSQL repositories
- memory: in-memory repositories with the same contracts
"""

from .app_db import AppDatabase
from .invites import PostgresInviteRepository
from .memory import (
    InMemoryInviteRepository,
    InMemoryProjectRepository,
    InMemoryStore,
    InMemoryTaskRepository,
    InMemoryUserRepository,
)
from .projects import PostgresProjectRepository
from .tasks import PostgresTaskRepository
from .users import PostgresUserRepository

__all__ = [
    "AppDatabase",
    "InMemoryInviteRepository",
    "InMemoryProjectRepository",
    "InMemoryStore",
    "InMemoryTaskRepository",
    "InMemoryUserRepository",
    "PostgresInviteRepository",
    "PostgresProjectRepository",
    "PostgresTaskRepository",
    "PostgresUserRepository",
]
