"""Application database adapter using asyncpg."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import asyncpg
import structlog

from projectdesk.adapters.db.schema import SCHEMA_SQL
from projectdesk.core.errors import UnavailableError

logger = structlog.get_logger()

# Faults that mean "the database could not be reached", as opposed to a bad query.
CONNECTION_ERRORS: tuple[type[BaseException], ...] = (
    asyncpg.PostgresConnectionError,
    asyncpg.InterfaceError,
    ConnectionError,
    OSError,
)


class AppDatabase:
    """Application database for users, projects, invites and tasks.

    Reads are retried once on a connection fault; writes are never retried and
    surface :class:`UnavailableError` instead.
    """

    def __init__(self, dsn: str, min_size: int = 2, max_size: int = 10):
        """Initialize the app database adapter."""
        self.dsn = dsn
        self.min_size = min_size
        self.max_size = max_size
        self.pool: asyncpg.Pool | None = None

    async def connect(self) -> None:
        """Create connection pool."""
        self.pool = await asyncpg.create_pool(
            self.dsn,
            min_size=self.min_size,
            max_size=self.max_size,
            command_timeout=60,
        )
        logger.info("app_database_connected", dsn=self.dsn.split("@")[-1])

    async def close(self) -> None:
        """Close connection pool."""
        if self.pool:
            await self.pool.close()
            logger.info("app_database_disconnected")

    async def apply_schema(self) -> None:
        """Create tables and indexes if they do not exist."""
        await self.execute(SCHEMA_SQL)
        logger.info("app_database_schema_applied")

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[asyncpg.Connection]:
        """Acquire a connection from the pool."""
        if self.pool is None:
            raise RuntimeError("Database pool not initialized")
        async with self.pool.acquire() as conn:
            yield conn

    async def _read(self, method: str, query: str, *args: Any) -> Any:
        for attempt in (1, 2):
            try:
                async with self.acquire() as conn:
                    return await getattr(conn, method)(query, *args)
            except CONNECTION_ERRORS as e:
                if attempt == 2:
                    logger.error("app_database_read_failed", error=str(e))
                    raise UnavailableError("Database unavailable") from e
                logger.warning("app_database_read_retry", error=str(e))
        return None

    async def fetch_one(self, query: str, *args: Any) -> dict[str, Any] | None:
        """Fetch a single row."""
        row = await self._read("fetchrow", query, *args)
        if row:
            return dict(row)
        return None

    async def fetch_all(self, query: str, *args: Any) -> list[dict[str, Any]]:
        """Fetch all rows."""
        rows = await self._read("fetch", query, *args)
        return [dict(row) for row in rows]

    async def execute(self, query: str, *args: Any) -> str:
        """Execute a query and return status."""
        try:
            async with self.acquire() as conn:
                result: str = await conn.execute(query, *args)
                return result
        except CONNECTION_ERRORS as e:
            logger.error("app_database_write_failed", error=str(e))
            raise UnavailableError("Database unavailable") from e

    async def execute_returning(self, query: str, *args: Any) -> dict[str, Any] | None:
        """Execute a query with RETURNING clause."""
        try:
            async with self.acquire() as conn:
                row = await conn.fetchrow(query, *args)
        except CONNECTION_ERRORS as e:
            logger.error("app_database_write_failed", error=str(e))
            raise UnavailableError("Database unavailable") from e
        if row:
            return dict(row)
        return None
