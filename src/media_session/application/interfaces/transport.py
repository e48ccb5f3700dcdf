"""Port interface for the component that owns the playable resource."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ...domain.playback.entities import Track


ReadyCallback = Callable[[float | None], None]
PositionCallback = Callable[[float], None]
EndedCallback = Callable[[], None]
FailedCallback = Callable[[str], None]


class Transport(ABC):
    """Interface for the single decode/playback resource.

    A transport never publishes on the event channel. It reports through the
    signal callbacks registered with ``set_signal_handlers`` and the state
    machine translates those into channel events.
    """

    @abstractmethod
    async def load(self, track: Track) -> bool:
        """Replace the active resource with *track*.

        Any ``play()`` still pending for the previous resource is rejected.
        Resolves True once the resource signals it can play, False if it
        failed to become ready. Never raises.
        """
        ...

    @abstractmethod
    async def play(self) -> None:
        """Start playback.

        Raises:
            PlaybackRejectedError: blocked by policy, decode error, or the
                resource is not ready. The transport stays paused and does
                not retry.
        """
        ...

    @abstractmethod
    def pause(self) -> None:
        """Pause playback. No-op when nothing is loaded."""
        ...

    @abstractmethod
    def seek(self, time: float) -> None:
        """Move to *time*, clamped to ``[0, duration]``. No-op if duration is unknown."""
        ...

    @abstractmethod
    def set_volume(self, level: float) -> None:
        ...

    @abstractmethod
    def set_muted(self, muted: bool) -> None:
        ...

    @abstractmethod
    def unload(self) -> None:
        """Release the active resource."""
        ...

    @property
    @abstractmethod
    def position(self) -> float:
        """Current playback position in seconds."""
        ...

    @property
    @abstractmethod
    def duration(self) -> float | None:
        """Resource duration in seconds, or None while unknown."""
        ...

    @property
    @abstractmethod
    def has_resource(self) -> bool:
        ...

    @property
    @abstractmethod
    def is_ready(self) -> bool:
        ...

    @property
    @abstractmethod
    def is_playing(self) -> bool:
        ...

    @abstractmethod
    def set_signal_handlers(
        self,
        *,
        on_ready: ReadyCallback | None = None,
        on_position: PositionCallback | None = None,
        on_ended: EndedCallback | None = None,
        on_failed: FailedCallback | None = None,
    ) -> None:
        """Register the callbacks for resource-ready, position-advanced, ended
        and playback-failed signals. Passing None clears a callback."""
        ...
