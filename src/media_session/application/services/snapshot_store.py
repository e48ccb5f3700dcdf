"""Single-use mailbox carrying playback position across view teardown."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from ...domain.playback.entities import NavigationSnapshot
from ...domain.playback.events import SessionPreserveRequested
from ...domain.shared.events import Topics
from ...domain.shared.exceptions import StaleNavigationSnapshotError
from ...domain.shared.messages import ErrorMessages, LogTemplates

if TYPE_CHECKING:
    from ...domain.playback.repository import NavigationSnapshotRepository
    from ...domain.shared.events import EventChannel

logger = logging.getLogger(__name__)


class SnapshotStore:
    """Navigation persistence store.

    Listens for ``session.preserve`` and writes the snapshot through to the
    repository. ``consume`` hands it to the next session exactly once: the
    stored row is deleted whether or not it ends up being applied.
    """

    def __init__(
        self,
        channel: EventChannel,
        repository: NavigationSnapshotRepository,
    ) -> None:
        self._channel = channel
        self._repository = repository
        self._unsubscribe: Callable[[], None] | None = None
        self._pending: set[asyncio.Task[None]] = set()

    def attach(self) -> None:
        if self._unsubscribe is None:
            self._unsubscribe = self._channel.subscribe(
                Topics.SESSION_PRESERVE, self._on_preserve_requested
            )

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_preserve_requested(self, event: SessionPreserveRequested) -> None:
        snapshot = NavigationSnapshot(
            was_playing=event.is_playing,
            track_index=event.track_index,
            position_seconds=event.position_seconds,
        )
        task = asyncio.create_task(self.write(snapshot))
        self._pending.add(task)
        task.add_done_callback(self._on_write_done)

    def _on_write_done(self, task: asyncio.Task[None]) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Failed to write navigation snapshot", exc_info=exc)

    async def write(self, snapshot: NavigationSnapshot) -> None:
        await self._repository.save(snapshot)
        logger.info(
            LogTemplates.SNAPSHOT_WRITTEN,
            snapshot.track_index,
            snapshot.position_seconds,
            snapshot.was_playing,
        )

    async def flush(self) -> None:
        """Wait for writes triggered by ``session.preserve`` to land."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def pending_index(self) -> int | None:
        """Track index the stored snapshot was taken on, without consuming it."""
        await self.flush()
        try:
            snapshot = await self._repository.peek()
        except StaleNavigationSnapshotError as e:
            logger.info(LogTemplates.SNAPSHOT_STALE, e.message)
            return None
        return snapshot.track_index if snapshot is not None else None

    async def consume(self, expected_index: int | None) -> NavigationSnapshot | None:
        """Take the snapshot if it belongs to the session about to start.

        Returns None when there is no snapshot or it is stale; in every case
        nothing is left behind for a later read.
        """
        await self.flush()
        try:
            snapshot = await self._repository.take()
            if snapshot is None:
                return None
            self._validate(snapshot, expected_index)
        except StaleNavigationSnapshotError as e:
            logger.info(LogTemplates.SNAPSHOT_STALE, e.message)
            return None

        logger.info(
            LogTemplates.SNAPSHOT_CONSUMED,
            snapshot.track_index,
            snapshot.position_seconds,
            snapshot.was_playing,
        )
        return snapshot

    @staticmethod
    def _validate(snapshot: NavigationSnapshot, expected_index: int | None) -> None:
        if expected_index is None or snapshot.track_index != expected_index:
            raise StaleNavigationSnapshotError(
                ErrorMessages.SNAPSHOT_INDEX_MISMATCH.format(
                    stored=snapshot.track_index, expected=expected_index
                )
            )
