"""SQLite implementation of the navigation snapshot repository."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from media_session.domain.playback.entities import NavigationSnapshot
from media_session.domain.playback.repository import NavigationSnapshotRepository
from media_session.domain.shared.datetime_utils import utc_isoformat
from media_session.domain.shared.exceptions import StaleNavigationSnapshotError
from media_session.domain.shared.messages import ErrorMessages

if TYPE_CHECKING:
    from ..database import Database

logger = logging.getLogger(__name__)


class SQLiteNavigationSnapshotRepository(NavigationSnapshotRepository):
    def __init__(self, database: Database) -> None:
        self._db = database

    async def save(self, snapshot: NavigationSnapshot) -> None:
        await self._db.execute(
            """
            INSERT INTO navigation_snapshot (id, was_playing, track_index, position_seconds, written_at)
            VALUES (1, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                was_playing = excluded.was_playing,
                track_index = excluded.track_index,
                position_seconds = excluded.position_seconds,
                written_at = excluded.written_at
            """,
            (
                int(snapshot.was_playing),
                snapshot.track_index,
                snapshot.position_seconds,
                utc_isoformat(),
            ),
        )

    async def take(self) -> NavigationSnapshot | None:
        # Read and delete under one transaction so the snapshot is single-use.
        async with self._db.transaction() as conn:
            cursor = await conn.execute("SELECT * FROM navigation_snapshot WHERE id = 1")
            row = await cursor.fetchone()
            if row is None:
                return None
            await conn.execute("DELETE FROM navigation_snapshot WHERE id = 1")
            data = dict(row)

        return self._row_to_snapshot(data)

    async def peek(self) -> NavigationSnapshot | None:
        row = await self._db.fetch_one("SELECT * FROM navigation_snapshot WHERE id = 1")
        if row is None:
            return None
        return self._row_to_snapshot(row)

    async def clear(self) -> bool:
        cursor = await self._db.execute("DELETE FROM navigation_snapshot WHERE id = 1")
        return cursor.rowcount > 0

    def _row_to_snapshot(self, row: dict[str, Any]) -> NavigationSnapshot:
        try:
            return NavigationSnapshot(
                was_playing=bool(row["was_playing"]),
                track_index=row["track_index"],
                position_seconds=row["position_seconds"],
            )
        except (KeyError, ValidationError) as e:
            raise StaleNavigationSnapshotError(
                ErrorMessages.SNAPSHOT_MALFORMED.format(detail=e)
            ) from e
