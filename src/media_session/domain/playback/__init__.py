"""Playback bounded context - tracks, session, commands and state events."""

from media_session.domain.playback.entities import (
    DurableSettings,
    NavigationSnapshot,
    PlaybackSession,
    Track,
)
from media_session.domain.playback.events import (
    AnyCommand,
    Command,
    NextCommand,
    PauseCommand,
    PlaybackFailed,
    PlayCommand,
    PrevCommand,
    ProgressUpdated,
    SeekCommand,
    SessionPreserveRequested,
    SetMutedCommand,
    SetVolumeCommand,
    StateChanged,
    TrackChanged,
    VolumeChanged,
)
from media_session.domain.playback.services import PlaybackRules
from media_session.domain.playback.value_objects import (
    CommandType,
    Direction,
    FailureReason,
    SessionState,
)

__all__ = [
    # Entities
    "Track",
    "DurableSettings",
    "NavigationSnapshot",
    "PlaybackSession",
    # Value Objects
    "SessionState",
    "Direction",
    "CommandType",
    "FailureReason",
    # Commands
    "AnyCommand",
    "Command",
    "PlayCommand",
    "PauseCommand",
    "NextCommand",
    "PrevCommand",
    "SeekCommand",
    "SetVolumeCommand",
    "SetMutedCommand",
    # State events
    "StateChanged",
    "ProgressUpdated",
    "TrackChanged",
    "PlaybackFailed",
    "VolumeChanged",
    "SessionPreserveRequested",
    # Services
    "PlaybackRules",
]
