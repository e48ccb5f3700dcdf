"""SQLite implementation of the durable settings repository."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import ValidationError

from media_session.domain.playback.entities import DurableSettings
from media_session.domain.playback.repository import DurableSettingsRepository
from media_session.domain.shared.constants import SettingsKeys
from media_session.domain.shared.datetime_utils import utc_isoformat

if TYPE_CHECKING:
    from ..database import Database

logger = logging.getLogger(__name__)


class SQLiteDurableSettingsRepository(DurableSettingsRepository):
    """Stores each preference as its own key/value row."""

    def __init__(self, database: Database) -> None:
        self._db = database

    async def load(self) -> DurableSettings | None:
        rows = await self._db.fetch_all("SELECT key, value FROM durable_settings")
        if not rows:
            return None

        values = {row["key"]: row["value"] for row in rows}
        defaults = DurableSettings()

        volume = defaults.volume
        raw_volume = values.get(SettingsKeys.VOLUME)
        if raw_volume is not None:
            try:
                volume = float(raw_volume)
            except ValueError:
                logger.warning("Ignoring unparseable stored volume %r", raw_volume)

        is_muted = defaults.is_muted
        raw_muted = values.get(SettingsKeys.IS_MUTED)
        if raw_muted is not None:
            is_muted = raw_muted.lower() in ("1", "true")

        try:
            return DurableSettings(volume=volume, is_muted=is_muted)
        except ValidationError:
            logger.warning("Stored volume %r out of range, using default", volume)
            return DurableSettings(volume=defaults.volume, is_muted=is_muted)

    async def save(self, settings: DurableSettings) -> None:
        now = utc_isoformat()
        async with self._db.transaction() as conn:
            await conn.executemany(
                """
                INSERT INTO durable_settings (key, value, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
                """,
                [
                    (SettingsKeys.VOLUME, repr(settings.volume), now),
                    (SettingsKeys.IS_MUTED, "1" if settings.is_muted else "0", now),
                ],
            )
