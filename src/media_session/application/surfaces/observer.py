"""Detail-view observer: is my track playing, and which note line is active."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING

from ...domain.playback.events import (
    ProgressUpdated,
    SessionPreserveRequested,
    StateChanged,
    TrackChanged,
)
from ...domain.shared.events import Topics
from .producer import CommandProducer

if TYPE_CHECKING:
    from ...domain.playback.entities import PlaybackSession, Track
    from ...domain.shared.events import EventChannel

logger = logging.getLogger(__name__)


class PlaybackObserver:
    """Read-only mirror of the session from the point of view of one track.

    A detail view shows a single track. It highlights "playing" only while the
    session is playing *that* track, and walks the note/lyric text one line
    every ``note_line_seconds`` of playback. With ``follow_player`` the view
    re-targets itself whenever the session switches tracks.
    """

    def __init__(
        self,
        channel: EventChannel,
        tracks: Sequence[Track],
        track_index: int,
        *,
        follow_player: bool = False,
        note_line_seconds: float = 3.0,
        initial: PlaybackSession | None = None,
    ) -> None:
        self._channel = channel
        self._tracks = tuple(tracks)
        self._track_index = track_index
        self._follow_player = follow_player
        self._note_line_seconds = note_line_seconds
        self._producer = CommandProducer(channel, initial=initial)
        self._unsubscribers: list[Callable[[], None]] = []

        self._session_playing = initial.is_playing if initial else False
        self._session_index = initial.current_index if initial else None
        self._session_time = initial.current_time if initial else 0.0
        self._current_time = 0.0
        self._duration: float | None = None
        if initial is not None and initial.current_index == track_index:
            self._current_time = initial.current_time
            self._duration = initial.duration

    def attach(self) -> None:
        if self._unsubscribers:
            return
        self._producer.attach()
        self._unsubscribers = [
            self._channel.subscribe(Topics.STATE_CHANGED, self._on_state_changed),
            self._channel.subscribe(Topics.STATE_TRACK_CHANGED, self._on_track_changed),
            self._channel.subscribe(Topics.STATE_PROGRESS, self._on_progress),
        ]

    def close(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()
        self._producer.close()

    # === Mirror ===

    @property
    def track_index(self) -> int:
        return self._track_index

    @property
    def track(self) -> Track | None:
        if 0 <= self._track_index < len(self._tracks):
            return self._tracks[self._track_index]
        return None

    @property
    def is_my_track_playing(self) -> bool:
        return self._session_playing and self._session_index == self._track_index

    @property
    def current_time(self) -> float:
        return self._current_time

    @property
    def duration(self) -> float | None:
        return self._duration

    @property
    def active_line(self) -> int:
        track = self.track
        if track is None or not self.is_my_track_playing:
            return 0
        line_count = len(track.note_lines)
        if line_count == 0:
            return 0
        line = int(self._current_time // self._note_line_seconds)
        return min(max(line, 0), line_count - 1)

    @property
    def active_note(self) -> str | None:
        track = self.track
        if track is None or not track.note_lines:
            return None
        return track.note_lines[self.active_line]

    # === Commands for this view's track ===

    def play(self) -> None:
        self._producer.play(self._track_index)

    def pause(self) -> None:
        self._producer.pause()

    def toggle(self) -> None:
        if self.is_my_track_playing:
            self._producer.pause()
        else:
            self._producer.play(self._track_index)

    def relinquish(self) -> None:
        """Leave the view while audio keeps going: ask for a navigation snapshot."""
        if self._session_index is None:
            return
        self._channel.publish(
            Topics.SESSION_PRESERVE,
            SessionPreserveRequested(
                is_playing=self._session_playing,
                track_index=self._session_index,
                position_seconds=max(0.0, self._session_time),
            ),
        )

    # === Handlers ===

    def _on_state_changed(self, event: StateChanged) -> None:
        self._session_playing = event.is_playing
        self._session_index = event.track_index
        if self._follow_player and event.track_index is not None:
            self._retarget(event.track_index)

    def _on_track_changed(self, event: TrackChanged) -> None:
        self._session_index = event.track_index
        self._session_playing = False
        self._session_time = 0.0
        if self._follow_player:
            self._retarget(event.track_index)
        if event.track_index == self._track_index:
            self._current_time = 0.0
            self._duration = None

    def _on_progress(self, event: ProgressUpdated) -> None:
        if event.track_index != self._session_index:
            return
        self._session_time = event.current_time
        if event.track_index == self._track_index:
            self._current_time = event.current_time
            self._duration = event.duration

    def _retarget(self, index: int) -> None:
        if index == self._track_index:
            return
        self._track_index = index
        self._current_time = 0.0
        self._duration = None
