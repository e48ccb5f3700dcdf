import asyncio

import pytest
import pytest_asyncio

from media_session.application.interfaces.transport import Transport
from media_session.domain.shared.exceptions import PlaybackRejectedError
from media_session.domain.shared.messages import ErrorMessages

# ============================================================================
# Test Doubles
# ============================================================================


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class EventRecorder:
    """Collects every payload published on the given topics, in order."""

    def __init__(self, channel, topics):
        self.events: list[tuple[str, object]] = []
        self._unsubscribers = [
            channel.subscribe(topic, self._make_handler(topic)) for topic in topics
        ]

    def _make_handler(self, topic):
        def handler(payload):
            self.events.append((topic, payload))

        return handler

    def of(self, topic):
        return [payload for t, payload in self.events if t == topic]

    def clear(self):
        self.events.clear()

    def close(self):
        for unsubscribe in self._unsubscribers:
            unsubscribe()


class ScriptedTransport(Transport):
    """Transport whose load/play completions are driven by the test.

    With ``auto_ready``/``auto_play`` set, load and play resolve on the next
    loop iteration. Otherwise each call parks a future that the test resolves
    with ``resolve_load``/``resolve_play`` in any order it likes.
    """

    def __init__(
        self,
        *,
        auto_ready: bool = True,
        auto_play: bool = True,
        duration: float = 200.0,
        reject_pending_on_load: bool = True,
    ) -> None:
        self.auto_ready = auto_ready
        self.auto_play = auto_play
        self.default_duration = duration
        self.reject_pending_on_load = reject_pending_on_load
        self.unavailable: set[str] = set()
        self.reject_reason: str | None = None

        self.calls: list[str] = []
        self.loaded = []
        self.pending_loads: list[asyncio.Future] = []
        self.pending_plays: list[asyncio.Future] = []

        self.volume = 1.0
        self.muted = False

        self._track = None
        self._ready = False
        self._playing = False
        self._position = 0.0
        self._duration = None

        self._on_ready = None
        self._on_position = None
        self._on_ended = None
        self._on_failed = None

    # --- Transport port ---

    async def load(self, track) -> bool:
        self.calls.append(f"load:{track.id}")
        self.loaded.append(track)
        for fut in self.pending_loads:
            if not fut.done():
                fut.set_result(False)
        self.pending_loads.clear()
        if self.reject_pending_on_load:
            self._reject_pending_plays(ErrorMessages.RESOURCE_REPLACED)

        self._track = track
        self._ready = False
        self._playing = False
        self._position = 0.0
        self._duration = None

        if self.auto_ready:
            await asyncio.sleep(0)
            ok = track.audio_url not in self.unavailable
        else:
            fut = asyncio.get_running_loop().create_future()
            self.pending_loads.append(fut)
            ok = await fut

        if self._track is not track or not ok:
            return False
        self._ready = True
        self._duration = self.default_duration
        if self._on_ready is not None:
            self._on_ready(self._duration)
        return True

    async def play(self) -> None:
        self.calls.append("play")
        if self._track is None:
            raise PlaybackRejectedError(ErrorMessages.NO_RESOURCE_LOADED)
        if self.reject_reason is not None:
            raise PlaybackRejectedError(self.reject_reason)
        if self.auto_play:
            await asyncio.sleep(0)
        else:
            fut = asyncio.get_running_loop().create_future()
            self.pending_plays.append(fut)
            await fut
        self._playing = True

    def pause(self) -> None:
        self.calls.append("pause")
        self._reject_pending_plays(ErrorMessages.PLAY_INTERRUPTED)
        self._playing = False

    def seek(self, time: float) -> None:
        self.calls.append(f"seek:{time}")
        if self._duration is None:
            return
        self._position = min(max(0.0, time), self._duration)

    def set_volume(self, level: float) -> None:
        self.volume = level

    def set_muted(self, muted: bool) -> None:
        self.muted = muted

    def unload(self) -> None:
        self.calls.append("unload")
        self._reject_pending_plays(ErrorMessages.RESOURCE_REPLACED)
        self._track = None
        self._ready = False
        self._playing = False
        self._duration = None

    @property
    def position(self) -> float:
        return self._position

    @property
    def duration(self):
        return self._duration

    @property
    def has_resource(self) -> bool:
        return self._track is not None

    @property
    def is_ready(self) -> bool:
        return self._ready

    @property
    def is_playing(self) -> bool:
        return self._playing

    def set_signal_handlers(self, *, on_ready=None, on_position=None, on_ended=None, on_failed=None):
        self._on_ready = on_ready
        self._on_position = on_position
        self._on_ended = on_ended
        self._on_failed = on_failed

    # --- Test controls ---

    def resolve_load(self, ok: bool = True, index: int = 0) -> None:
        self.pending_loads[index].set_result(ok)

    def resolve_play(self, index: int = 0, error: Exception | None = None) -> None:
        fut = self.pending_plays[index]
        if error is None:
            fut.set_result(None)
        else:
            fut.set_exception(error)

    def set_position(self, position: float) -> None:
        self._position = position

    def emit_position(self, position: float) -> None:
        self._position = position
        if self._on_position is not None:
            self._on_position(position)

    def emit_ended(self) -> None:
        self._playing = False
        if self._duration is not None:
            self._position = self._duration
        if self._on_ended is not None:
            self._on_ended()

    def emit_failed(self, reason: str) -> None:
        self._playing = False
        if self._on_failed is not None:
            self._on_failed(reason)

    def _reject_pending_plays(self, reason: str) -> None:
        for fut in self.pending_plays:
            if not fut.done():
                fut.set_exception(PlaybackRejectedError(reason))


async def settle(rounds: int = 10) -> None:
    """Let spawned tasks run a few loop iterations."""
    for _ in range(rounds):
        await asyncio.sleep(0)


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest_asyncio.fixture
async def in_memory_database():
    """Create an in-memory SQLite database for testing."""
    from media_session.infrastructure.persistence.database import Database

    db = Database(":memory:")
    await db.initialize()
    yield db
    await db.close()


@pytest_asyncio.fixture
async def snapshot_repository(in_memory_database):
    from media_session.infrastructure.persistence.repositories.snapshot_repository import (
        SQLiteNavigationSnapshotRepository,
    )

    return SQLiteNavigationSnapshotRepository(in_memory_database)


@pytest_asyncio.fixture
async def settings_repository(in_memory_database):
    from media_session.infrastructure.persistence.repositories.settings_repository import (
        SQLiteDurableSettingsRepository,
    )

    return SQLiteDurableSettingsRepository(in_memory_database)


# ============================================================================
# Domain Fixtures
# ============================================================================


def make_tracks(count: int = 5):
    from media_session.domain.playback.entities import Track

    return [
        Track(
            id=f"track-{i}",
            title=f"Song {i}",
            artist=f"Artist {i}",
            audio_url=f"https://cdn.example/audio/{i}.mp3",
            cover_url=f"https://cdn.example/cover/{i}.jpg",
            note="\n".join(f"line {i}.{n}" for n in range(4)),
        )
        for i in range(count)
    ]


@pytest.fixture
def sample_tracks():
    """Five tracks with four note lines each."""
    return make_tracks(5)


@pytest.fixture
def channel():
    from media_session.domain.shared.events import EventChannel

    return EventChannel()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def transport():
    return ScriptedTransport()


@pytest.fixture
def playback_settings():
    from media_session.config.settings import PlaybackSettings

    return PlaybackSettings(progress_throttle_ms=250, ready_timeout_seconds=2.0)


@pytest.fixture
def recorder(channel):
    from media_session.domain.shared.events import Topics

    rec = EventRecorder(
        channel,
        [
            Topics.STATE_CHANGED,
            Topics.STATE_PROGRESS,
            Topics.STATE_TRACK_CHANGED,
            Topics.STATE_PLAYBACK_FAILED,
            Topics.STATE_VOLUME_CHANGED,
            Topics.SESSION_PRESERVE,
        ],
    )
    yield rec
    rec.close()


@pytest_asyncio.fixture
async def settings_store(settings_repository):
    from media_session.application.services.settings_store import SettingsStore

    return SettingsStore(settings_repository)


@pytest_asyncio.fixture
async def snapshot_store(channel, snapshot_repository):
    from media_session.application.services.snapshot_store import SnapshotStore

    store = SnapshotStore(channel, snapshot_repository)
    store.attach()
    yield store
    store.close()


@pytest_asyncio.fixture
async def state_machine(channel, transport, settings_store, snapshot_store, playback_settings, clock):
    from media_session.application.services.playback_state_machine import PlaybackStateMachine

    machine = PlaybackStateMachine(
        channel=channel,
        transport=transport,
        settings_store=settings_store,
        snapshot_store=snapshot_store,
        settings=playback_settings,
        clock=clock,
    )
    yield machine
    await machine.shutdown(preserve=False)
