"""
Virtual Transport

In-process transport that simulates loading, a playback clock and the
failure modes of a real audio element, without touching any audio device.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from media_session.application.interfaces.transport import (
    EndedCallback,
    FailedCallback,
    PositionCallback,
    ReadyCallback,
    Transport,
)
from media_session.domain.shared.exceptions import PlaybackRejectedError
from media_session.domain.shared.messages import ErrorMessages, LogTemplates

if TYPE_CHECKING:
    from ...config.settings import PlaybackSettings
    from ...domain.playback.entities import Track

logger = logging.getLogger(__name__)


@dataclass
class VirtualTransportConfig:
    """Timing and failure injection for the virtual transport."""

    tick_interval_ms: int = 50
    load_seconds: float = 0.05
    default_duration_seconds: float = 180.0

    # Per-locator overrides
    durations: dict[str, float] = field(default_factory=dict)
    unavailable: set[str] = field(default_factory=set)  # never become ready
    blocked: set[str] = field(default_factory=set)  # play() rejected by policy
    decode_failures: dict[str, float] = field(default_factory=dict)  # fail at position

    @classmethod
    def from_settings(cls, settings: PlaybackSettings) -> VirtualTransportConfig:
        return cls(
            tick_interval_ms=settings.tick_interval_ms,
            load_seconds=settings.simulated_load_seconds,
            default_duration_seconds=settings.simulated_duration_seconds,
        )

    def duration_for(self, locator: str) -> float:
        return self.durations.get(locator, self.default_duration_seconds)


class VirtualTransport(Transport):
    """Single-resource transport driven by an asyncio ticker task."""

    def __init__(
        self,
        config: VirtualTransportConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._config = config or VirtualTransportConfig()
        self._clock = clock

        self._track: Track | None = None
        self._load_token = 0
        self._ready = False
        self._failed = False
        self._position = 0.0
        self._duration: float | None = None
        self._playing = False
        self._volume = 1.0
        self._muted = False

        self._pending_play: asyncio.Future[None] | None = None
        self._ticker: asyncio.Task[None] | None = None

        self._on_ready: ReadyCallback | None = None
        self._on_position: PositionCallback | None = None
        self._on_ended: EndedCallback | None = None
        self._on_failed: FailedCallback | None = None

    @property
    def config(self) -> VirtualTransportConfig:
        return self._config

    # === Transport port ===

    async def load(self, track: Track) -> bool:
        self._release(ErrorMessages.RESOURCE_REPLACED)
        self._track = track
        self._load_token += 1
        token = self._load_token
        logger.debug(LogTemplates.TRANSPORT_LOADING, track.audio_url)

        if self._config.load_seconds > 0:
            await asyncio.sleep(self._config.load_seconds)
        else:
            await asyncio.sleep(0)

        # Replaced or unloaded while loading
        if token != self._load_token:
            return False

        if track.audio_url in self._config.unavailable:
            self._failed = True
            self._settle_pending_play(PlaybackRejectedError(ErrorMessages.RESOURCE_NOT_READY))
            return False

        self._duration = self._config.duration_for(track.audio_url)
        self._ready = True
        logger.debug(LogTemplates.TRANSPORT_READY, track.audio_url, self._duration)
        self._settle_pending_play(None)
        if self._on_ready is not None:
            self._on_ready(self._duration)
        return True

    async def play(self) -> None:
        track = self._track
        if track is None:
            raise PlaybackRejectedError(ErrorMessages.NO_RESOURCE_LOADED)
        if self._failed:
            raise PlaybackRejectedError(ErrorMessages.RESOURCE_NOT_READY)

        if not self._ready:
            if self._pending_play is None or self._pending_play.done():
                self._pending_play = asyncio.get_running_loop().create_future()
            await self._pending_play
            # Replaced while we were waiting
            if self._track is not track:
                raise PlaybackRejectedError(ErrorMessages.RESOURCE_REPLACED)

        if track.audio_url in self._config.blocked:
            raise PlaybackRejectedError(ErrorMessages.PLAYBACK_BLOCKED.format(locator=track.audio_url))

        if self._playing:
            return
        if self._duration is not None and self._position >= self._duration:
            self._position = 0.0

        self._playing = True
        self._ticker = asyncio.create_task(self._tick())

    def pause(self) -> None:
        self._settle_pending_play(PlaybackRejectedError(ErrorMessages.PLAY_INTERRUPTED))
        if not self._playing:
            return
        self._stop_ticker()
        self._playing = False

    def seek(self, time: float) -> None:
        if self._duration is None:
            return
        self._position = min(max(0.0, time), self._duration)

    def set_volume(self, level: float) -> None:
        self._volume = min(max(0.0, level), 1.0)

    def set_muted(self, muted: bool) -> None:
        self._muted = muted

    def unload(self) -> None:
        had_resource = self._track is not None
        self._release(ErrorMessages.RESOURCE_REPLACED)
        self._load_token += 1
        self._track = None
        if had_resource:
            logger.debug(LogTemplates.TRANSPORT_UNLOADED)

    @property
    def position(self) -> float:
        return self._position

    @property
    def duration(self) -> float | None:
        return self._duration

    @property
    def has_resource(self) -> bool:
        return self._track is not None

    @property
    def is_ready(self) -> bool:
        return self._ready

    @property
    def is_playing(self) -> bool:
        return self._playing

    def set_signal_handlers(
        self,
        *,
        on_ready: ReadyCallback | None = None,
        on_position: PositionCallback | None = None,
        on_ended: EndedCallback | None = None,
        on_failed: FailedCallback | None = None,
    ) -> None:
        self._on_ready = on_ready
        self._on_position = on_position
        self._on_ended = on_ended
        self._on_failed = on_failed

    # === Extra read-only views ===

    @property
    def current_track(self) -> Track | None:
        return self._track

    @property
    def volume(self) -> float:
        return self._volume

    @property
    def is_muted(self) -> bool:
        return self._muted

    @property
    def effective_volume(self) -> float:
        return 0.0 if self._muted else self._volume

    # === Internals ===

    async def _tick(self) -> None:
        interval = self._config.tick_interval_ms / 1000
        last = self._clock()
        while True:
            await asyncio.sleep(interval)
            now = self._clock()
            self._position += now - last
            last = now

            track = self._track
            duration = self._duration
            if track is None or duration is None:
                return

            fail_at = self._config.decode_failures.get(track.audio_url)
            if fail_at is not None and self._position >= fail_at:
                self._position = fail_at
                self._halt()
                if self._on_failed is not None:
                    self._on_failed(ErrorMessages.DECODE_FAILED.format(locator=track.audio_url))
                return

            if self._position >= duration:
                self._position = duration
                self._halt()
                if self._on_position is not None:
                    self._on_position(self._position)
                if self._on_ended is not None:
                    self._on_ended()
                return

            if self._on_position is not None:
                self._on_position(self._position)

    def _halt(self) -> None:
        """Stop from inside the ticker; the task finishes on its own."""
        self._ticker = None
        self._playing = False

    def _stop_ticker(self) -> None:
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None

    def _settle_pending_play(self, error: Exception | None) -> None:
        waiter = self._pending_play
        self._pending_play = None
        if waiter is None or waiter.done():
            return
        if error is None:
            waiter.set_result(None)
        else:
            waiter.set_exception(error)

    def _release(self, reason: str) -> None:
        self._settle_pending_play(PlaybackRejectedError(reason))
        self._stop_ticker()
        self._playing = False
        self._ready = False
        self._failed = False
        self._position = 0.0
        self._duration = None
