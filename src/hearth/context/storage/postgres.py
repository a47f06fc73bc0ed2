"""
Postgres Storage Adapter for Context Documents

One row per user in ``user_contexts``, the whole document in a JSONB column.
Writes are upserts that replace the document wholesale.
"""

import json
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import asyncpg

from hearth.context.storage.base import ContextStorageAdapter
from hearth.core.constants import (
    STORAGE_POOL_SIZE_MAX,
    STORAGE_POOL_SIZE_MIN,
    STORAGE_TIMEOUT_SECS_DEFAULT,
)
from hearth.core.errors import StoreUnavailable

logger = logging.getLogger(__name__)


class PostgresContextAdapter(ContextStorageAdapter):
    """Async Postgres adapter for context documents."""

    def __init__(self, url: str, timeout: float = STORAGE_TIMEOUT_SECS_DEFAULT) -> None:
        self._url = url
        self._timeout = timeout
        self._pool: asyncpg.Pool | None = None

    async def connect(self) -> None:
        """Connect to Postgres."""
        try:
            self._pool = await asyncpg.create_pool(
                self._url,
                min_size=STORAGE_POOL_SIZE_MIN,
                max_size=STORAGE_POOL_SIZE_MAX,
                command_timeout=self._timeout,
            )
        except (OSError, asyncpg.PostgresError) as e:
            raise StoreUnavailable(f"Could not connect to Postgres: {e}") from e

    async def disconnect(self) -> None:
        """Disconnect from Postgres."""
        if self._pool:
            await self._pool.close()
            self._pool = None

    async def health_check(self) -> bool:
        """Check if Postgres is healthy."""
        if not self._pool:
            return False
        try:
            async with self._pool.acquire() as conn:
                await conn.fetchval("SELECT 1")
            return True
        except Exception as e:
            logger.debug(f"Postgres health check failed: {e}")
            return False

    @asynccontextmanager
    async def _connection(self) -> AsyncIterator[asyncpg.Connection]:
        """Acquire a pooled connection, mapping driver failures to StoreUnavailable."""
        if not self._pool:
            raise RuntimeError("Not connected to Postgres")
        try:
            async with self._pool.acquire() as conn:
                yield conn
        except (OSError, asyncpg.PostgresError, asyncpg.InterfaceError) as e:
            raise StoreUnavailable(str(e)) from e

    async def init_schema(self) -> None:
        """Create the user_contexts table if it does not exist."""
        async with self._connection() as conn:
            await conn.execute("""
                CREATE TABLE IF NOT EXISTS user_contexts (
                    user_id TEXT PRIMARY KEY,
                    document JSONB NOT NULL,
                    created_at TIMESTAMPTZ DEFAULT NOW(),
                    updated_at TIMESTAMPTZ DEFAULT NOW()
                )
            """)

    async def read(self, user_id: str) -> dict[str, Any] | None:
        """Get the stored document for a user."""
        async with self._connection() as conn:
            value = await conn.fetchval(
                "SELECT document FROM user_contexts WHERE user_id = $1",
                user_id,
            )

        if value is None:
            return None
        return json.loads(value) if isinstance(value, str) else value

    async def write(self, user_id: str, document: dict[str, Any]) -> None:
        """Upsert the document for a user."""
        async with self._connection() as conn:
            await conn.execute(
                """
                INSERT INTO user_contexts (user_id, document)
                VALUES ($1, $2::jsonb)
                ON CONFLICT (user_id)
                DO UPDATE SET document = EXCLUDED.document, updated_at = NOW()
                """,
                user_id,
                json.dumps(document),
            )

    async def delete(self, user_id: str) -> bool:
        """Delete the document for a user."""
        async with self._connection() as conn:
            result = await conn.execute(
                "DELETE FROM user_contexts WHERE user_id = $1",
                user_id,
            )
        return result == "DELETE 1"

    async def list_users(self, limit: int = 100) -> list[str]:
        """List user ids, most recently updated first."""
        async with self._connection() as conn:
            rows = await conn.fetch(
                "SELECT user_id FROM user_contexts ORDER BY updated_at DESC LIMIT $1",
                limit,
            )
        return [row["user_id"] for row in rows]
