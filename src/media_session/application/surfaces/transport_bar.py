"""Transport bar view model: the full read-only mirror plus its controls."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING

from ...domain.playback.events import (
    PlaybackFailed,
    ProgressUpdated,
    StateChanged,
    TrackChanged,
    VolumeChanged,
)
from ...domain.shared.datetime_utils import format_clock
from ...domain.shared.events import Topics
from .producer import CommandProducer

if TYPE_CHECKING:
    from ...domain.playback.entities import PlaybackSession, Track
    from ...domain.shared.events import EventChannel

logger = logging.getLogger(__name__)


class TransportBarModel:
    def __init__(
        self,
        channel: EventChannel,
        tracks: Sequence[Track],
        *,
        initial: PlaybackSession | None = None,
    ) -> None:
        self._channel = channel
        self._tracks = tuple(tracks)
        self._producer = CommandProducer(channel, initial=initial)
        self._unsubscribers: list[Callable[[], None]] = []

        self.track_index: int | None = initial.current_index if initial else None
        self.is_playing = initial.is_playing if initial else False
        self.current_time = initial.current_time if initial else 0.0
        self.duration: float | None = initial.duration if initial else None
        self.volume = initial.volume if initial else 0.7
        self.is_muted = initial.is_muted if initial else False
        self.last_failure: str | None = initial.last_failure if initial else None
        self.generation = initial.generation if initial else 0

    def attach(self) -> None:
        if self._unsubscribers:
            return
        self._producer.attach()
        routes: dict[str, Callable[..., None]] = {
            Topics.STATE_CHANGED: self._on_state_changed,
            Topics.STATE_TRACK_CHANGED: self._on_track_changed,
            Topics.STATE_PROGRESS: self._on_progress,
            Topics.STATE_VOLUME_CHANGED: self._on_volume_changed,
            Topics.STATE_PLAYBACK_FAILED: self._on_playback_failed,
        }
        self._unsubscribers = [
            self._channel.subscribe(topic, handler) for topic, handler in routes.items()
        ]

    def close(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()
        self._producer.close()

    # === Derived views ===

    @property
    def current_track(self) -> Track | None:
        if self.track_index is None or not 0 <= self.track_index < len(self._tracks):
            return None
        return self._tracks[self.track_index]

    @property
    def is_effectively_muted(self) -> bool:
        """Muted, or the volume is all the way down."""
        return self.is_muted or self.volume == 0

    @property
    def progress_fraction(self) -> float:
        if not self.duration:
            return 0.0
        return min(max(self.current_time / self.duration, 0.0), 1.0)

    @staticmethod
    def format_time(seconds: float | None) -> str:
        return format_clock(seconds)

    def render(self) -> str:
        """One-line text rendering used by the console front end."""
        track = self.current_track
        title = track.display_title if track else "-"
        status = "playing" if self.is_playing else "paused"
        volume = "muted" if self.is_effectively_muted else f"vol {round(self.volume * 100)}%"
        line = (
            f"[{status}] #{self.track_index if self.track_index is not None else '-'} {title} "
            f"{self.format_time(self.current_time)} / {self.format_time(self.duration)} ({volume})"
        )
        if self.last_failure:
            line += f" ! {self.last_failure}"
        return line

    # === Controls ===

    def toggle_play(self) -> None:
        if self.is_playing:
            self._producer.pause()
        else:
            self._producer.play()

    def next(self) -> None:
        self._producer.next()

    def prev(self) -> None:
        self._producer.prev()

    def seek(self, seconds: float) -> None:
        self._producer.seek(seconds)

    def seek_fraction(self, fraction: float) -> None:
        if self.duration is None:
            return
        self._producer.seek(min(max(fraction, 0.0), 1.0) * self.duration)

    def set_volume(self, level: float) -> None:
        self._producer.set_volume(level)

    def toggle_mute(self) -> None:
        self._producer.set_muted(not self.is_muted)

    # === Handlers ===

    def _on_state_changed(self, event: StateChanged) -> None:
        self.is_playing = event.is_playing
        self.track_index = event.track_index
        self.generation = event.generation
        if event.is_playing:
            self.last_failure = None

    def _on_track_changed(self, event: TrackChanged) -> None:
        self.track_index = event.track_index
        self.is_playing = False
        self.current_time = 0.0
        self.duration = None
        self.generation = event.generation

    def _on_progress(self, event: ProgressUpdated) -> None:
        if event.track_index != self.track_index:
            return
        self.current_time = event.current_time
        self.duration = event.duration

    def _on_volume_changed(self, event: VolumeChanged) -> None:
        self.volume = event.volume
        self.is_muted = event.is_muted

    def _on_playback_failed(self, event: PlaybackFailed) -> None:
        self.last_failure = event.reason
