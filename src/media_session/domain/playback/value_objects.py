"""Immutable value objects for the playback bounded context."""

from __future__ import annotations

from enum import Enum


class SessionState(Enum):
    """Playback session state with enforced transitions.

    State transitions:
    - IDLE -> LOADING | TRANSITIONING (a track gets selected)
    - LOADING -> PLAYING | PAUSED | LOADING | TRANSITIONING
    - PLAYING -> PAUSED | LOADING | TRANSITIONING
    - PAUSED -> PLAYING | LOADING | TRANSITIONING
    - TRANSITIONING -> LOADING | PLAYING | PAUSED | TRANSITIONING
    - Any -> IDLE (session torn down)
    """

    IDLE = "idle"
    LOADING = "loading"
    PLAYING = "playing"
    PAUSED = "paused"
    TRANSITIONING = "transitioning"

    def can_transition_to(self, target: SessionState) -> bool:
        """Check if transition to target state is valid."""
        if target == SessionState.IDLE:
            return True
        valid_transitions = {
            SessionState.IDLE: {SessionState.LOADING, SessionState.TRANSITIONING},
            SessionState.LOADING: {
                SessionState.PLAYING,
                SessionState.PAUSED,
                SessionState.LOADING,
                SessionState.TRANSITIONING,
            },
            SessionState.PLAYING: {
                SessionState.PAUSED,
                SessionState.LOADING,
                SessionState.TRANSITIONING,
            },
            SessionState.PAUSED: {
                SessionState.PLAYING,
                SessionState.LOADING,
                SessionState.TRANSITIONING,
            },
            SessionState.TRANSITIONING: {
                SessionState.LOADING,
                SessionState.PLAYING,
                SessionState.PAUSED,
                SessionState.TRANSITIONING,
            },
        }
        return target in valid_transitions.get(self, set())

    @property
    def is_playing(self) -> bool:
        return self == SessionState.PLAYING

    @property
    def has_resource(self) -> bool:
        return self != SessionState.IDLE

    @property
    def is_settled(self) -> bool:
        """Ready resource with position either frozen or advancing."""
        return self in {SessionState.PLAYING, SessionState.PAUSED}


class Direction(Enum):
    """Direction of a user-visible track hand-off."""

    NEXT = "next"
    PREV = "prev"


class CommandType(Enum):
    """Kinds of playback commands producers may publish."""

    PLAY = "play"
    PAUSE = "pause"
    NEXT = "next"
    PREV = "prev"
    SEEK = "seek"
    SET_VOLUME = "set_volume"
    SET_MUTED = "set_muted"


class FailureReason(Enum):
    """Why a start attempt ended in the paused fallback."""

    REJECTED = "rejected"
    NOT_READY = "not_ready"
    TIMEOUT = "timeout"
    TRANSPORT_ERROR = "transport_error"
