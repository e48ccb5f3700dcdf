"""Repository interfaces for state that outlives a single session instance."""

from __future__ import annotations

from abc import ABC, abstractmethod

from media_session.domain.playback.entities import DurableSettings, NavigationSnapshot


class NavigationSnapshotRepository(ABC):
    """Storage for the single-use cross-navigation snapshot."""

    @abstractmethod
    async def save(self, snapshot: NavigationSnapshot) -> None:
        """Write the snapshot, replacing any previous one."""
        ...

    @abstractmethod
    async def take(self) -> NavigationSnapshot | None:
        """Read and delete the snapshot in one step.

        Raises:
            StaleNavigationSnapshotError: If a stored row cannot be parsed.
                The row is deleted regardless.
        """
        ...

    @abstractmethod
    async def peek(self) -> NavigationSnapshot | None:
        """Read the snapshot without consuming it."""
        ...

    @abstractmethod
    async def clear(self) -> bool:
        """Delete any stored snapshot. Returns True if one existed."""
        ...


class DurableSettingsRepository(ABC):
    """Storage for volume/mute preferences."""

    @abstractmethod
    async def load(self) -> DurableSettings | None:
        ...

    @abstractmethod
    async def save(self, settings: DurableSettings) -> None:
        ...
