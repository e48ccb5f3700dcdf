"""Playback State Machine - the single authority over the playback session."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Coroutine, Sequence
from typing import TYPE_CHECKING, Any

from ...domain.playback.entities import PlaybackSession
from ...domain.playback.events import (
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
from ...domain.playback.services import PlaybackRules
from ...domain.playback.value_objects import Direction, FailureReason, SessionState
from ...domain.shared.events import Topics
from ...domain.shared.exceptions import (
    InvalidCommandTargetError,
    PlaybackRejectedError,
    SupersededOperationError,
)
from ...domain.shared.messages import ErrorMessages, LogTemplates
from .progress_throttle import ProgressThrottle

if TYPE_CHECKING:
    from ...config.settings import PlaybackSettings
    from ...domain.playback.entities import NavigationSnapshot, Track
    from ...domain.shared.events import EventChannel
    from ..interfaces.transport import Transport
    from .settings_store import SettingsStore
    from .snapshot_store import SnapshotStore

logger = logging.getLogger(__name__)


class PlaybackStateMachine:
    """Interprets channel commands, drives the transport, republishes state.

    Every asynchronous start (load, then play) captures the session
    generation when it is issued. When it completes, a generation mismatch
    means a newer command took over and the completion is dropped.
    """

    def __init__(
        self,
        *,
        channel: EventChannel,
        transport: Transport,
        settings_store: SettingsStore,
        snapshot_store: SnapshotStore,
        settings: PlaybackSettings,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._channel = channel
        self._transport = transport
        self._settings_store = settings_store
        self._snapshot_store = snapshot_store
        self._settings = settings

        self._session = PlaybackSession()
        self._started = False
        self._unsubscribers: list[Callable[[], None]] = []
        self._tasks: set[asyncio.Task[None]] = set()

        # Generation of the start (load and/or play) currently in flight.
        self._pending_start: int | None = None

        self._throttle = ProgressThrottle(settings.progress_throttle_ms, self._emit_progress, clock)

    # === Read-only views ===

    @property
    def session(self) -> PlaybackSession:
        """A copy of the authoritative session; mutating it has no effect."""
        return self._session.model_copy()

    @property
    def is_started(self) -> bool:
        return self._started

    # === Lifecycle ===

    async def start(
        self, tracks: Sequence[Track], *, initial_index: int | None = None
    ) -> PlaybackSession:
        """Establish the session over *tracks*.

        Applies durable volume/mute, consumes the navigation snapshot for the
        index being established, and begins loading that track. Returns once
        the load has been issued; readiness arrives later.
        """
        if self._started:
            logger.warning(LogTemplates.SESSION_ALREADY_STARTED)
            return self.session

        durable = await self._settings_store.load()
        self._session = PlaybackSession(
            tracks=tuple(tracks),
            volume=durable.volume,
            is_muted=durable.is_muted,
        )
        self._transport.set_volume(durable.volume)
        self._transport.set_muted(durable.is_muted)
        self._transport.set_signal_handlers(
            on_ready=self._on_transport_ready,
            on_position=self._on_transport_position,
            on_ended=self._on_transport_ended,
            on_failed=self._on_transport_failed,
        )

        target: int | None = None
        if self._session.has_tracks:
            target = initial_index if self._session.is_valid_index(initial_index) else 0

        snapshot = await self._snapshot_store.consume(target)

        self._subscribe()
        self._started = True
        logger.info(LogTemplates.SESSION_STARTED, self._session.track_count, target)

        if target is not None:
            auto_play = snapshot is not None and snapshot.was_playing
            self._switch_to(target, direction=None, auto_play=auto_play, snapshot=snapshot)

        return self.session

    async def shutdown(self, *, preserve: bool = True) -> None:
        """Tear the session down.

        With *preserve*, publishes ``session.preserve`` carrying the exact
        transport position first so the next session can resume from it.
        """
        if not self._started:
            return

        session = self._session
        if preserve and session.current_index is not None:
            self._channel.publish(
                Topics.SESSION_PRESERVE,
                SessionPreserveRequested(
                    is_playing=session.is_playing or self._pending_start is not None,
                    track_index=session.current_index,
                    position_seconds=max(0.0, self._transport.position),
                ),
            )

        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()

        session.bump_generation()
        self._pending_start = None
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

        self._transport.set_signal_handlers()
        self._transport.unload()
        session.reset()
        self._started = False

        await self._snapshot_store.flush()
        await self._settings_store.flush()
        logger.info(LogTemplates.SESSION_SHUTDOWN, preserve)

    async def wait_idle(self) -> None:
        """Wait until no load/play operation is in flight."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _subscribe(self) -> None:
        routes: dict[str, Callable[[Any], None]] = {
            Topics.COMMAND_PLAY: self._on_play,
            Topics.COMMAND_PAUSE: self._on_pause,
            Topics.COMMAND_NEXT: self._on_next,
            Topics.COMMAND_PREV: self._on_prev,
            Topics.COMMAND_SEEK: self._on_seek,
            Topics.COMMAND_VOLUME: self._on_volume,
            Topics.COMMAND_MUTE: self._on_mute,
        }
        for topic, handler in routes.items():
            self._unsubscribers.append(self._channel.subscribe(topic, handler))

    # === Command handlers ===

    def _accept(self, command: Command) -> bool:
        session = self._session
        index = getattr(command, "track_index", None)
        logger.debug(
            LogTemplates.COMMAND_RECEIVED,
            command.command_type.value,
            index,
            command.issued_at_generation,
        )
        issued = command.issued_at_generation
        if issued is not None and issued < session.generation:
            logger.debug(
                LogTemplates.COMMAND_STALE, command.command_type.value, issued, session.generation
            )
            return False
        return True

    def _valid_target(self, command: Command, index: int | None) -> bool:
        session = self._session
        if not session.has_tracks:
            logger.debug(LogTemplates.COMMAND_NO_TRACKS, command.command_type.value)
            return False
        if index is None:
            return True
        try:
            PlaybackRules.validate_target(index, session.track_count)
        except InvalidCommandTargetError as e:
            logger.info(LogTemplates.COMMAND_INVALID_TARGET, command.command_type.value, e.message)
            return False
        return True

    def _on_play(self, command: PlayCommand) -> None:
        if not self._accept(command) or not self._valid_target(command, command.track_index):
            return

        session = self._session
        if command.track_index is not None and command.track_index != session.current_index:
            self._switch_to(command.track_index, direction=None, auto_play=True)
            return

        if session.is_playing or self._pending_start == session.generation:
            logger.debug(LogTemplates.COMMAND_NOOP, "play", session.state.value)
            return

        if session.state in (SessionState.LOADING, SessionState.TRANSITIONING):
            # Join the load already in flight instead of superseding it.
            self._pending_start = session.generation
            return

        # Nothing usable behind the session (never loaded, or the last load failed).
        if session.is_idle or session.current_index is None or not self._transport.is_ready:
            self._switch_to(session.current_index or 0, direction=None, auto_play=True)
            return

        generation = session.bump_generation()
        self._pending_start = generation
        self._spawn(self._start_playback(generation))

    def _on_pause(self, command: PauseCommand) -> None:
        if not self._accept(command):
            return

        session = self._session
        if session.is_idle:
            logger.debug(LogTemplates.COMMAND_NOOP, "pause", session.state.value)
            return
        if session.state == SessionState.PAUSED and self._pending_start is None:
            logger.debug(LogTemplates.COMMAND_NOOP, "pause", session.state.value)
            return

        session.bump_generation()
        self._pending_start = None
        self._transport.pause()
        position = self._transport.position
        session.current_time = max(0.0, position)
        self._throttle.flush(session.current_time)

        previous = session.transition_to(SessionState.PAUSED)
        logger.info(LogTemplates.PLAYBACK_PAUSED, session.current_time, session.current_index)
        if previous != SessionState.PAUSED:
            self._log_transition(previous)
            self._publish_state()

    def _on_next(self, command: NextCommand) -> None:
        if not self._accept(command) or not self._valid_target(command, command.track_index):
            return
        self._advance(Direction.NEXT, command.track_index)

    def _on_prev(self, command: PrevCommand) -> None:
        if not self._accept(command) or not self._valid_target(command, command.track_index):
            return

        session = self._session
        if command.track_index is None and session.state.is_settled:
            position = self._transport.position
            if PlaybackRules.should_restart(position, self._settings.restart_threshold_seconds):
                # Same track, same intent: no generation bump and no state.changed,
                # observers see the position jump through the progress flush.
                logger.info(LogTemplates.TRACK_RESTART, session.current_index, position)
                self._transport.seek(0.0)
                session.current_time = 0.0
                self._throttle.flush(0.0)
                return

        self._advance(Direction.PREV, command.track_index)

    def _on_seek(self, command: SeekCommand) -> None:
        if not self._accept(command):
            return

        session = self._session
        if not session.state.has_resource or not self._transport.has_resource:
            logger.debug(LogTemplates.COMMAND_NO_RESOURCE, "seek")
            return

        target = PlaybackRules.clamp_position(command.time, self._transport.duration)
        if target is None:
            logger.debug(LogTemplates.COMMAND_NO_DURATION, "seek")
            return

        self._transport.seek(target)
        session.current_time = max(0.0, self._transport.position)
        self._throttle.flush(session.current_time)

    def _on_volume(self, command: SetVolumeCommand) -> None:
        if not self._accept(command):
            return

        level = PlaybackRules.clamp_volume(command.level)
        self._transport.set_volume(level)
        self._session.volume = level
        self._settings_store.update(volume=level)
        self._publish_volume()

    def _on_mute(self, command: SetMutedCommand) -> None:
        if not self._accept(command):
            return

        self._transport.set_muted(command.muted)
        self._session.is_muted = command.muted
        self._settings_store.update(is_muted=command.muted)
        self._publish_volume()

    # === Transport signals ===

    def _on_transport_ready(self, duration: float | None) -> None:
        session = self._session
        if duration is not None and duration >= 0:
            session.duration = duration
        self._throttle.flush(max(0.0, self._transport.position))

    def _on_transport_position(self, position: float) -> None:
        session = self._session
        if not session.state.has_resource:
            return
        session.current_time = max(0.0, position)
        self._throttle.offer(session.current_time)

    def _on_transport_ended(self) -> None:
        session = self._session
        if session.state != SessionState.PLAYING:
            return
        final = self._transport.duration
        session.current_time = max(0.0, final if final is not None else self._transport.position)
        self._throttle.flush(session.current_time)
        logger.info(LogTemplates.TRACK_ENDED, session.current_index)
        self._advance(Direction.NEXT, None)

    def _on_transport_failed(self, reason: str) -> None:
        session = self._session
        # While loading/starting, the pending operation reports the failure.
        if not session.state.is_settled or self._pending_start is not None:
            return

        logger.warning(LogTemplates.TRANSPORT_FAILED, session.current_index, reason)
        generation = session.bump_generation()
        self._transport.pause()
        self._fall_back(generation, FailureReason.TRANSPORT_ERROR, reason)

    # === Transitions ===

    def _advance(self, direction: Direction, explicit_index: int | None) -> None:
        session = self._session
        if explicit_index is not None:
            target = explicit_index
        else:
            current = session.current_index if session.current_index is not None else 0
            if direction == Direction.NEXT:
                target = PlaybackRules.next_index(current, session.track_count)
            else:
                target = PlaybackRules.previous_index(current, session.track_count)
        self._switch_to(target, direction=direction, auto_play=True)

    def _switch_to(
        self,
        index: int,
        *,
        direction: Direction | None,
        auto_play: bool,
        snapshot: NavigationSnapshot | None = None,
    ) -> None:
        session = self._session
        generation = session.bump_generation()
        track = session.select(index)

        previous = session.transition_to(
            SessionState.TRANSITIONING if direction is not None else SessionState.LOADING
        )
        session.direction = direction
        self._log_transition(previous)
        self._pending_start = generation if auto_play else None
        self._throttle.reset()

        logger.info(
            LogTemplates.TRACK_SWITCH,
            index,
            track.title,
            direction.value if direction else None,
            generation,
        )
        self._channel.publish(
            Topics.STATE_TRACK_CHANGED,
            TrackChanged(
                track_index=index,
                auto_play=auto_play,
                direction=direction,
                generation=generation,
            ),
        )
        self._spawn(self._load_and_start(generation, track, auto_play, snapshot))

    async def _load_and_start(
        self,
        generation: int,
        track: Track,
        auto_play: bool,
        snapshot: NavigationSnapshot | None,
    ) -> None:
        failure = await self._load_resource(track)
        if self._is_superseded(generation, "load"):
            return
        if failure is not None:
            self._pending_start = None
            self._fall_back(generation, *failure)
            return

        session = self._session
        previous = session.transition_to(SessionState.LOADING)
        self._log_transition(previous)
        self._sync_duration()

        if snapshot is not None:
            self._transport.seek(snapshot.position_seconds)
            session.current_time = max(0.0, self._transport.position)
            self._throttle.flush(session.current_time)
            logger.info(
                LogTemplates.SNAPSHOT_RESTORED,
                session.current_time,
                session.current_index,
                snapshot.was_playing,
            )

        if auto_play or self._pending_start == generation:
            await self._start_playback(generation)
        else:
            previous = session.transition_to(SessionState.PAUSED)
            self._log_transition(previous)
            self._publish_state()

    async def _load_resource(self, track: Track) -> tuple[FailureReason, str] | None:
        timeout = self._settings.ready_timeout_seconds
        try:
            ready = await asyncio.wait_for(self._transport.load(track), timeout=timeout)
        except TimeoutError:
            return FailureReason.TIMEOUT, ErrorMessages.READY_TIMEOUT.format(seconds=timeout)

        if not ready:
            logger.warning(LogTemplates.RESOURCE_NOT_READY, self._session.current_index)
            return FailureReason.NOT_READY, ErrorMessages.RESOURCE_NOT_READY
        return None

    async def _start_playback(self, generation: int) -> None:
        self._pending_start = generation
        timeout = self._settings.ready_timeout_seconds
        try:
            await asyncio.wait_for(self._transport.play(), timeout=timeout)
        except PlaybackRejectedError as e:
            if self._is_superseded(generation, "play"):
                return
            self._pending_start = None
            self._fall_back(generation, FailureReason.REJECTED, e.reason)
            return
        except TimeoutError:
            if self._is_superseded(generation, "play"):
                return
            self._pending_start = None
            self._transport.pause()
            self._fall_back(
                generation,
                FailureReason.TIMEOUT,
                ErrorMessages.READY_TIMEOUT.format(seconds=timeout),
            )
            return

        if self._is_superseded(generation, "play"):
            self._enforce_paused_intent()
            return

        self._pending_start = None
        session = self._session
        previous = session.transition_to(SessionState.PLAYING)
        session.last_failure = None
        self._sync_duration()
        self._log_transition(previous)
        logger.info(LogTemplates.PLAYBACK_STARTED, session.current_index, session.current_track.title)
        self._publish_state()

    def _fall_back(self, generation: int, reason: FailureReason, detail: str) -> None:
        """Recover from a failed start: paused at the current index."""
        session = self._session
        logger.warning(LogTemplates.PLAYBACK_REJECTED, session.current_index, detail)
        previous = session.transition_to(SessionState.PAUSED)
        session.last_failure = detail
        self._log_transition(previous)
        self._channel.publish(
            Topics.STATE_PLAYBACK_FAILED,
            PlaybackFailed(
                track_index=session.current_index,
                reason=f"{reason.value}: {detail}",
                generation=generation,
            ),
        )
        self._publish_state()

    def _is_superseded(self, generation: int, operation: str) -> bool:
        current = self._session.generation
        if generation != current:
            logger.debug(
                LogTemplates.OPERATION_SUPERSEDED,
                SupersededOperationError(operation, generation, current).message,
            )
            return True
        return False

    def _enforce_paused_intent(self) -> None:
        """A stale play resolved after the user paused: keep the output silent."""
        if (
            self._pending_start is None
            and self._session.state == SessionState.PAUSED
            and self._transport.is_playing
        ):
            self._transport.pause()

    def _sync_duration(self) -> None:
        duration = self._transport.duration
        if duration is not None and duration >= 0:
            self._session.duration = duration

    # === Publication ===

    def _publish_state(self) -> None:
        session = self._session
        self._channel.publish(
            Topics.STATE_CHANGED,
            StateChanged(
                is_playing=session.is_playing,
                track_index=session.current_index,
                generation=session.generation,
            ),
        )

    def _publish_volume(self) -> None:
        self._channel.publish(
            Topics.STATE_VOLUME_CHANGED,
            VolumeChanged(volume=self._session.volume, is_muted=self._session.is_muted),
        )

    def _emit_progress(self, position: float) -> None:
        session = self._session
        self._channel.publish(
            Topics.STATE_PROGRESS,
            ProgressUpdated(
                track_index=session.current_index,
                current_time=max(0.0, position),
                duration=session.duration,
                generation=session.generation,
            ),
        )

    def _log_transition(self, previous: SessionState) -> None:
        session = self._session
        if previous != session.state:
            logger.debug(
                LogTemplates.STATE_TRANSITION,
                previous.value,
                session.state.value,
                session.current_index,
                session.generation,
            )

    # === Task bookkeeping ===

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Task[None]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Playback operation failed", exc_info=exc)
