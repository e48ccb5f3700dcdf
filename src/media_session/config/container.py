"""Dependency Injection Container

Builds the object graph for one media session: persistence, channel,
transport, catalog, stores and the state machine. Components are created on
first access and cached.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from ..application.interfaces.catalog import TrackCatalog
    from ..application.interfaces.transport import Transport
    from ..application.services.playback_state_machine import PlaybackStateMachine
    from ..application.services.settings_store import SettingsStore
    from ..application.services.snapshot_store import SnapshotStore
    from ..domain.playback.repository import (
        DurableSettingsRepository,
        NavigationSnapshotRepository,
    )
    from ..domain.shared.events import EventChannel
    from ..infrastructure.persistence.database import Database
    from .settings import Settings


@dataclass
class Container:
    """Dependency injection container.

    Overrides (a fake transport, a static catalog) can be passed in at
    construction; anything left as None is built lazily from settings.
    """

    settings: Settings

    # Persistence layer
    _database: Database | None = None
    _snapshot_repository: NavigationSnapshotRepository | None = None
    _settings_repository: DurableSettingsRepository | None = None

    # Infrastructure adapters
    _channel: EventChannel | None = None
    _transport: Transport | None = None
    _catalog: TrackCatalog | None = None

    # Application services
    _settings_store: SettingsStore | None = None
    _snapshot_store: SnapshotStore | None = None
    _state_machine: PlaybackStateMachine | None = None

    # === Database ===

    @property
    def database(self) -> Database:
        if self._database is None:
            from ..infrastructure.persistence.database import Database

            self._database = Database(self.settings.database.url, settings=self.settings.database)
        return self._database

    # === Repositories ===

    @property
    def snapshot_repository(self) -> NavigationSnapshotRepository:
        if self._snapshot_repository is None:
            from ..infrastructure.persistence.repositories.snapshot_repository import (
                SQLiteNavigationSnapshotRepository,
            )

            self._snapshot_repository = SQLiteNavigationSnapshotRepository(self.database)
        return self._snapshot_repository

    @property
    def settings_repository(self) -> DurableSettingsRepository:
        if self._settings_repository is None:
            from ..infrastructure.persistence.repositories.settings_repository import (
                SQLiteDurableSettingsRepository,
            )

            self._settings_repository = SQLiteDurableSettingsRepository(self.database)
        return self._settings_repository

    # === Adapters ===

    @property
    def channel(self) -> EventChannel:
        if self._channel is None:
            from ..domain.shared.events import EventChannel

            self._channel = EventChannel()
        return self._channel

    @property
    def transport(self) -> Transport:
        if self._transport is None:
            from ..infrastructure.audio.virtual_transport import (
                VirtualTransport,
                VirtualTransportConfig,
            )

            config = VirtualTransportConfig.from_settings(self.settings.playback)
            self._transport = VirtualTransport(config)
        return self._transport

    @property
    def catalog(self) -> TrackCatalog:
        if self._catalog is None:
            from ..infrastructure.catalog.http_catalog import HttpTrackCatalog

            self._catalog = HttpTrackCatalog(self.settings.catalog)
        return self._catalog

    # === Application services ===

    @property
    def settings_store(self) -> SettingsStore:
        if self._settings_store is None:
            from ..application.services.settings_store import SettingsStore
            from ..domain.playback.entities import DurableSettings

            playback = self.settings.playback
            defaults = DurableSettings(
                volume=playback.default_volume, is_muted=playback.default_muted
            )
            self._settings_store = SettingsStore(self.settings_repository, defaults)
        return self._settings_store

    @property
    def snapshot_store(self) -> SnapshotStore:
        if self._snapshot_store is None:
            from ..application.services.snapshot_store import SnapshotStore

            self._snapshot_store = SnapshotStore(self.channel, self.snapshot_repository)
        return self._snapshot_store

    @property
    def state_machine(self) -> PlaybackStateMachine:
        if self._state_machine is None:
            from ..application.services.playback_state_machine import PlaybackStateMachine

            self._state_machine = PlaybackStateMachine(
                channel=self.channel,
                transport=self.transport,
                settings_store=self.settings_store,
                snapshot_store=self.snapshot_store,
                settings=self.settings.playback,
            )
        return self._state_machine

    # === Lifecycle ===

    async def initialize(self) -> None:
        """Initialize all async resources."""
        await self.database.initialize()
        self.snapshot_store.attach()

    async def shutdown(self, *, preserve: bool = True) -> None:
        """Stop the session and release resources."""
        if self._state_machine is not None:
            await self._state_machine.shutdown(preserve=preserve)

        if self._snapshot_store is not None:
            await self._snapshot_store.flush()
            self._snapshot_store.close()

        close_catalog = getattr(self._catalog, "close", None)
        if close_catalog is not None:
            try:
                await close_catalog()
            except Exception as exc:
                logger.warning("Failed closing catalog client: %r", exc)

        if self._database is not None:
            await self._database.close()


def create_container(settings: Settings, **overrides: object) -> Container:
    """Create a new dependency injection container.

    ``overrides`` map component names (``transport``, ``catalog`` ...) to
    ready-made instances.
    """
    return Container(settings, **{f"_{name}": value for name, value in overrides.items()})
