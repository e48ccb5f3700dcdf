"""Channel payloads for the playback bounded context.

Commands travel producer -> state machine, state events travel state machine
-> observers, and ``SessionPreserveRequested`` travels departing view ->
snapshot store.
"""

from __future__ import annotations

from typing import Annotated, ClassVar, Literal

from pydantic import Field

from media_session.domain.playback.value_objects import CommandType, Direction
from media_session.domain.shared.events import ChannelEvent, Topics
from media_session.domain.shared.types import (
    Generation,
    PositionSeconds,
    TrackIndex,
    VolumeLevel,
)


class Command(ChannelEvent):
    """Base class for playback commands.

    ``issued_at_generation`` is the generation the producer believed was
    current; ``None`` means the command expresses the latest intent and is
    never considered stale.
    """

    topic: ClassVar[str]
    command_type: ClassVar[CommandType]

    issued_at_generation: int | None = None


class PlayCommand(Command):
    topic: ClassVar[str] = Topics.COMMAND_PLAY
    command_type: ClassVar[CommandType] = CommandType.PLAY

    type: Literal["play"] = "play"
    track_index: int | None = None


class PauseCommand(Command):
    topic: ClassVar[str] = Topics.COMMAND_PAUSE
    command_type: ClassVar[CommandType] = CommandType.PAUSE

    type: Literal["pause"] = "pause"


class NextCommand(Command):
    topic: ClassVar[str] = Topics.COMMAND_NEXT
    command_type: ClassVar[CommandType] = CommandType.NEXT

    type: Literal["next"] = "next"
    track_index: int | None = None


class PrevCommand(Command):
    topic: ClassVar[str] = Topics.COMMAND_PREV
    command_type: ClassVar[CommandType] = CommandType.PREV

    type: Literal["prev"] = "prev"
    track_index: int | None = None


class SeekCommand(Command):
    topic: ClassVar[str] = Topics.COMMAND_SEEK
    command_type: ClassVar[CommandType] = CommandType.SEEK

    type: Literal["seek"] = "seek"
    time: float


class SetVolumeCommand(Command):
    topic: ClassVar[str] = Topics.COMMAND_VOLUME
    command_type: ClassVar[CommandType] = CommandType.SET_VOLUME

    type: Literal["set_volume"] = "set_volume"
    level: float


class SetMutedCommand(Command):
    topic: ClassVar[str] = Topics.COMMAND_MUTE
    command_type: ClassVar[CommandType] = CommandType.SET_MUTED

    type: Literal["set_muted"] = "set_muted"
    muted: bool


AnyCommand = Annotated[
    PlayCommand
    | PauseCommand
    | NextCommand
    | PrevCommand
    | SeekCommand
    | SetVolumeCommand
    | SetMutedCommand,
    Field(discriminator="type"),
]


# === State events ===


class StateChanged(ChannelEvent):
    """Published after every confirmed transport state transition.

    Order by ``generation``; ``timestamp`` is advisory.
    """

    is_playing: bool
    track_index: TrackIndex | None = None
    generation: Generation


class ProgressUpdated(ChannelEvent):
    track_index: TrackIndex | None = None
    current_time: PositionSeconds
    duration: PositionSeconds | None = None
    generation: Generation


class TrackChanged(ChannelEvent):
    track_index: TrackIndex
    auto_play: bool = True
    direction: Direction | None = None
    generation: Generation


class PlaybackFailed(ChannelEvent):
    track_index: TrackIndex | None = None
    reason: str
    generation: Generation


class VolumeChanged(ChannelEvent):
    volume: VolumeLevel
    is_muted: bool


class SessionPreserveRequested(ChannelEvent):
    """A departing view asks for the playback position to survive navigation."""

    is_playing: bool
    track_index: TrackIndex
    position_seconds: PositionSeconds = 0.0
