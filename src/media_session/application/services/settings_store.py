"""Durable volume/mute preferences with ordered write-through."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from ...domain.playback.entities import DurableSettings
from ...domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from ...domain.playback.repository import DurableSettingsRepository

logger = logging.getLogger(__name__)


class SettingsStore:
    """Holds the current DurableSettings and persists every change.

    Read once at session start; each ``update`` schedules a write. Writes run
    one at a time in the order they were issued, so the stored row always
    ends at the latest value.
    """

    def __init__(
        self,
        repository: DurableSettingsRepository,
        defaults: DurableSettings | None = None,
    ) -> None:
        self._repository = repository
        self._defaults = defaults or DurableSettings()
        self._current = self._defaults
        self._write_lock = asyncio.Lock()
        self._pending: set[asyncio.Task[None]] = set()

    @property
    def current(self) -> DurableSettings:
        return self._current

    async def load(self) -> DurableSettings:
        stored = await self._repository.load()
        if stored is None:
            logger.info(LogTemplates.SETTINGS_DEFAULTED)
            self._current = self._defaults
        else:
            logger.info(LogTemplates.SETTINGS_LOADED, stored.volume, stored.is_muted)
            self._current = stored
        return self._current

    def update(self, *, volume: float | None = None, is_muted: bool | None = None) -> DurableSettings:
        changes: dict[str, float | bool] = {}
        if volume is not None:
            changes["volume"] = volume
        if is_muted is not None:
            changes["is_muted"] = is_muted
        if not changes:
            return self._current

        self._current = DurableSettings.model_validate({**self._current.model_dump(), **changes})
        task = asyncio.create_task(self._write(self._current))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return self._current

    async def _write(self, settings: DurableSettings) -> None:
        async with self._write_lock:
            try:
                await self._repository.save(settings)
                logger.debug(LogTemplates.SETTINGS_SAVED, settings.volume, settings.is_muted)
            except Exception:
                logger.exception(LogTemplates.SETTINGS_SAVE_FAILED)

    async def flush(self) -> None:
        """Wait for every scheduled write to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
