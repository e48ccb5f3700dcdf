"""Command producer used by every view that can steer playback."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from ...domain.playback.events import (
    Command,
    NextCommand,
    PauseCommand,
    PlayCommand,
    PrevCommand,
    SeekCommand,
    SetMutedCommand,
    SetVolumeCommand,
    StateChanged,
    TrackChanged,
    VolumeChanged,
)
from ...domain.shared.events import Topics

if TYPE_CHECKING:
    from ...domain.playback.entities import PlaybackSession
    from ...domain.shared.events import EventChannel

logger = logging.getLogger(__name__)


class CommandProducer:
    """Publishes ``command.*`` payloads on the channel.

    The producer keeps a small mirror of ``state.changed`` and
    ``state.volume_changed`` so that ``toggle()`` and ``toggle_mute()`` can
    pick the right command. With ``stamp_generation`` set, every command
    carries the latest generation announced on ``state.changed`` or
    ``state.track_changed``, and the state machine drops it if a newer intent
    landed in between.
    """

    def __init__(
        self,
        channel: EventChannel,
        *,
        stamp_generation: bool = False,
        initial: PlaybackSession | None = None,
    ) -> None:
        self._channel = channel
        self._stamp_generation = stamp_generation
        self._unsubscribers: list[Callable[[], None]] = []

        self._is_playing = initial.is_playing if initial else False
        self._is_muted = initial.is_muted if initial else False
        self._generation: int | None = initial.generation if initial else None

    def attach(self) -> None:
        if self._unsubscribers:
            return
        self._unsubscribers = [
            self._channel.subscribe(Topics.STATE_CHANGED, self._on_state_changed),
            self._channel.subscribe(Topics.STATE_TRACK_CHANGED, self._on_track_changed),
            self._channel.subscribe(Topics.STATE_VOLUME_CHANGED, self._on_volume_changed),
        ]

    def close(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()

    @property
    def last_seen_generation(self) -> int | None:
        return self._generation

    @property
    def believes_playing(self) -> bool:
        return self._is_playing

    # === Commands ===

    def play(self, track_index: int | None = None) -> None:
        self._send(PlayCommand(track_index=track_index))

    def pause(self) -> None:
        self._send(PauseCommand())

    def toggle(self, track_index: int | None = None) -> None:
        """Pause if playing, otherwise play."""
        if self._is_playing:
            self.pause()
        else:
            self.play(track_index)

    def next(self, track_index: int | None = None) -> None:
        self._send(NextCommand(track_index=track_index))

    def prev(self, track_index: int | None = None) -> None:
        self._send(PrevCommand(track_index=track_index))

    def seek(self, time: float) -> None:
        self._send(SeekCommand(time=time))

    def set_volume(self, level: float) -> None:
        self._send(SetVolumeCommand(level=level))

    def set_muted(self, muted: bool) -> None:
        self._send(SetMutedCommand(muted=muted))

    def toggle_mute(self) -> None:
        self.set_muted(not self._is_muted)

    def _send(self, command: Command) -> None:
        if self._stamp_generation and self._generation is not None:
            command = command.model_copy(update={"issued_at_generation": self._generation})
        self._channel.publish(command.topic, command)

    # === Mirror ===

    def _on_state_changed(self, event: StateChanged) -> None:
        self._is_playing = event.is_playing
        self._generation = event.generation

    def _on_track_changed(self, event: TrackChanged) -> None:
        # A track switch bumps the generation before any state.changed follows.
        self._generation = event.generation

    def _on_volume_changed(self, event: VolumeChanged) -> None:
        self._is_muted = event.is_muted
