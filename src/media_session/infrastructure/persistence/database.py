"""SQLite storage for the navigation snapshot and durable settings.

Every operation opens its own aiosqlite connection. An in-memory database is
pinned by one anchor connection held until ``close()``, since SQLite drops a
shared in-memory database with its last connection.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator, Sequence
from contextlib import asynccontextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any

import aiosqlite

from media_session.domain.shared.constants import SQLPragmas
from media_session.domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from ...config.settings import DatabaseSettings

logger = logging.getLogger(__name__)

MEMORY_PATH = ":memory:"

SCHEMA: tuple[str, ...] = (
    # Single-row mailbox: id is pinned to 1.
    """
    CREATE TABLE IF NOT EXISTS navigation_snapshot (
        id INTEGER PRIMARY KEY CHECK (id = 1),
        was_playing INTEGER NOT NULL,
        track_index INTEGER NOT NULL,
        position_seconds REAL NOT NULL,
        written_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS durable_settings (
        key TEXT PRIMARY KEY,
        value TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
)


class Database:
    """Thin async wrapper that owns the schema and connection settings."""

    def __init__(self, url: str, settings: DatabaseSettings | None = None) -> None:
        self._db_path = url.removeprefix("sqlite:///")
        self._busy_timeout = settings.busy_timeout_ms if settings else 5000
        self._connection_timeout = settings.connection_timeout_s if settings else 10
        self._anchor: aiosqlite.Connection | None = None
        self._initialized = False

    @property
    def db_path(self) -> str:
        return self._db_path

    @property
    def is_memory(self) -> bool:
        return self._db_path == MEMORY_PATH

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    async def initialize(self) -> None:
        """Create the schema. Safe to call more than once."""
        if self._initialized:
            return

        if self.is_memory:
            self._anchor = await self._open()
        else:
            Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)

        async with self.transaction() as conn:
            for statement in SCHEMA:
                await conn.execute(statement)

        self._initialized = True
        logger.info(LogTemplates.DATABASE_INITIALIZED, self._db_path)

    async def _open(self) -> aiosqlite.Connection:
        if self.is_memory:
            target, uri = f"file:media-session-{id(self)}?mode=memory&cache=shared", True
        else:
            target, uri = self._db_path, False

        conn = await aiosqlite.connect(target, uri=uri, timeout=self._connection_timeout)
        conn.row_factory = aiosqlite.Row
        await conn.execute(SQLPragmas.JOURNAL_MODE_WAL)
        await conn.execute(SQLPragmas.BUSY_TIMEOUT.format(timeout=self._busy_timeout))
        return conn

    @asynccontextmanager
    async def connection(self) -> AsyncGenerator[aiosqlite.Connection, None]:
        """Short-lived connection for reads."""
        conn = await self._open()
        try:
            yield conn
        finally:
            await conn.close()

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[aiosqlite.Connection, None]:
        """Connection that commits on success and rolls back on error."""
        async with self.connection() as conn:
            try:
                yield conn
            except Exception:
                await conn.rollback()
                raise
            await conn.commit()

    async def execute(self, sql: str, parameters: Sequence[Any] = ()) -> aiosqlite.Cursor:
        async with self.transaction() as conn:
            return await conn.execute(sql, parameters)

    async def fetch_one(self, sql: str, parameters: Sequence[Any] = ()) -> dict[str, Any] | None:
        async with self.connection() as conn:
            async with conn.execute(sql, parameters) as cursor:
                row = await cursor.fetchone()
        return dict(row) if row is not None else None

    async def fetch_all(self, sql: str, parameters: Sequence[Any] = ()) -> list[dict[str, Any]]:
        async with self.connection() as conn:
            async with conn.execute(sql, parameters) as cursor:
                rows = await cursor.fetchall()
        return [dict(row) for row in rows]

    async def close(self) -> None:
        anchor, self._anchor = self._anchor, None
        if anchor is not None:
            await anchor.close()
        self._initialized = False
        logger.info(LogTemplates.DATABASE_CLOSED)
