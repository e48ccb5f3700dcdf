"""Core domain entities for the playback bounded context."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from media_session.domain.playback.value_objects import Direction, SessionState
from media_session.domain.shared.exceptions import (
    InvalidCommandTargetError,
    InvalidOperationError,
)
from media_session.domain.shared.types import (
    Generation,
    NonEmptyStr,
    PositionSeconds,
    TrackIndex,
    TrackTitleStr,
    VolumeLevel,
)


class Track(BaseModel):
    """Immutable value object representing one playable catalog item."""

    model_config = ConfigDict(frozen=True)

    id: NonEmptyStr
    title: TrackTitleStr
    artist: str = ""
    audio_url: NonEmptyStr
    cover_url: str | None = None
    note: str = ""

    @property
    def note_lines(self) -> list[str]:
        """Multi-line note/lyric text split into display lines."""
        if not self.note:
            return []
        return self.note.split("\n")

    @property
    def display_title(self) -> str:
        if self.artist:
            return f"{self.title} - {self.artist}"
        return self.title


class DurableSettings(BaseModel):
    """Volume and mute preferences persisted across sessions."""

    model_config = ConfigDict(frozen=True)

    volume: VolumeLevel = 0.7
    is_muted: bool = False


class NavigationSnapshot(BaseModel):
    """One-shot record carried across a view teardown/recreate boundary."""

    model_config = ConfigDict(frozen=True)

    was_playing: bool
    track_index: TrackIndex
    position_seconds: PositionSeconds = 0.0


class PlaybackSession(BaseModel):
    """Aggregate root holding the single authoritative playback record.

    Only the state machine mutates it; everybody else sees copies published
    on the event channel.
    """

    model_config = ConfigDict(validate_assignment=True)

    tracks: tuple[Track, ...] = ()
    current_index: TrackIndex | None = None
    state: SessionState = SessionState.IDLE
    current_time: PositionSeconds = 0.0
    duration: PositionSeconds | None = None
    volume: VolumeLevel = 0.7
    is_muted: bool = False
    generation: Generation = 0
    direction: Direction | None = None
    last_failure: str | None = None

    @property
    def track_count(self) -> int:
        return len(self.tracks)

    @property
    def has_tracks(self) -> bool:
        return bool(self.tracks)

    @property
    def is_playing(self) -> bool:
        return self.state.is_playing

    @property
    def is_idle(self) -> bool:
        return self.state == SessionState.IDLE

    @property
    def current_track(self) -> Track | None:
        if self.current_index is None:
            return None
        return self.tracks[self.current_index]

    @property
    def effective_volume(self) -> float:
        """Level actually applied to the output."""
        return 0.0 if self.is_muted else self.volume

    def is_valid_index(self, index: int | None) -> bool:
        return index is not None and 0 <= index < len(self.tracks)

    def track_at(self, index: int) -> Track:
        if not self.is_valid_index(index):
            raise InvalidCommandTargetError(index, len(self.tracks))
        return self.tracks[index]

    def select(self, index: int) -> Track:
        """Point the session at *index*, resetting the position record."""
        track = self.track_at(index)
        self.current_index = index
        self.current_time = 0.0
        self.duration = None
        return track

    def bump_generation(self) -> int:
        self.generation += 1
        return self.generation

    def transition_to(self, target: SessionState) -> SessionState:
        """Move to *target*, returning the previous state."""
        if target == self.state:
            return self.state
        if not self.state.can_transition_to(target):
            raise InvalidOperationError(target.value, self.state.value)
        previous = self.state
        self.state = target
        if target != SessionState.TRANSITIONING:
            self.direction = None
        return previous

    def reset(self) -> None:
        """Drop back to idle with no active resource."""
        self.state = SessionState.IDLE
        self.current_time = 0.0
        self.duration = None
        self.direction = None
