"""
Unit Tests for the Playback State Machine

Tests for:
- Session establishment, durable settings and snapshot restore
- Play/pause idempotence and wraparound navigation
- The prev restart-versus-skip rule
- Generation guard against out-of-order load/play completions
- Fallback to paused on rejection, load failure and timeout
- Throttled progress with immediate flush on seek and track end
"""

import asyncio

import pytest
from conftest import ScriptedTransport, settle

from media_session.application.services.playback_state_machine import PlaybackStateMachine
from media_session.config.settings import PlaybackSettings
from media_session.domain.playback.entities import DurableSettings, NavigationSnapshot
from media_session.domain.playback.events import (
    NextCommand,
    PauseCommand,
    PlayCommand,
    PrevCommand,
    SeekCommand,
    SessionPreserveRequested,
    SetMutedCommand,
    SetVolumeCommand,
)
from media_session.domain.playback.value_objects import Direction, SessionState
from media_session.domain.shared.events import Topics


def publish(channel, command):
    channel.publish(command.topic, command)


async def start_paused(machine, tracks, initial_index=None):
    await machine.start(tracks, initial_index=initial_index)
    await machine.wait_idle()


async def start_playing(machine, channel, tracks, initial_index=None):
    await start_paused(machine, tracks, initial_index)
    publish(channel, PlayCommand())
    await machine.wait_idle()


# =============================================================================
# Session establishment
# =============================================================================


class TestSessionStart:
    """Tests for establishing a session over a track sequence."""

    async def test_start_loads_first_track_paused(self, state_machine, transport, recorder, sample_tracks):
        """Should load index 0 and settle paused when there is no snapshot."""
        await start_paused(state_machine, sample_tracks)

        session = state_machine.session
        assert session.current_index == 0
        assert session.state == SessionState.PAUSED
        assert transport.calls == ["load:track-0"]

        changed = recorder.of(Topics.STATE_CHANGED)
        assert len(changed) == 1
        assert changed[0].is_playing is False
        assert changed[0].track_index == 0

    async def test_start_uses_valid_initial_index(self, state_machine, sample_tracks):
        """Should honour a valid initial index."""
        await start_paused(state_machine, sample_tracks, initial_index=3)

        assert state_machine.session.current_index == 3

    async def test_start_falls_back_to_zero_for_invalid_initial_index(self, state_machine, sample_tracks):
        """Should use index 0 when the initial index is out of range."""
        await start_paused(state_machine, sample_tracks, initial_index=42)

        assert state_machine.session.current_index == 0

    async def test_start_applies_durable_settings(
        self, state_machine, transport, settings_repository, sample_tracks
    ):
        """Should read volume/mute once and apply them to the transport."""
        await settings_repository.save(DurableSettings(volume=0.3, is_muted=True))

        await start_paused(state_machine, sample_tracks)

        assert transport.volume == pytest.approx(0.3)
        assert transport.muted is True
        assert state_machine.session.volume == pytest.approx(0.3)
        assert state_machine.session.is_muted is True

    async def test_start_twice_is_ignored(self, state_machine, transport, sample_tracks):
        """Should not reload when start is called on a running session."""
        await start_paused(state_machine, sample_tracks)
        await state_machine.start(sample_tracks, initial_index=2)
        await state_machine.wait_idle()

        assert state_machine.session.current_index == 0
        assert transport.calls == ["load:track-0"]

    async def test_empty_sequence_stays_idle(self, state_machine, channel, transport, recorder):
        """Should ignore play on an empty sequence without publishing state."""
        await start_paused(state_machine, [])

        publish(channel, PlayCommand())
        publish(channel, NextCommand())
        await state_machine.wait_idle()

        assert state_machine.session.state == SessionState.IDLE
        assert state_machine.session.current_index is None
        assert recorder.of(Topics.STATE_CHANGED) == []
        assert transport.calls == []


# =============================================================================
# Play / pause
# =============================================================================


class TestPlayPause:
    """Tests for play and pause commands."""

    async def test_play_starts_playback(self, state_machine, channel, recorder, sample_tracks):
        """Should move to PLAYING and publish is_playing=True."""
        await start_paused(state_machine, sample_tracks)
        recorder.clear()

        publish(channel, PlayCommand())
        await state_machine.wait_idle()

        assert state_machine.session.state == SessionState.PLAYING
        changed = recorder.of(Topics.STATE_CHANGED)
        assert [e.is_playing for e in changed] == [True]

    async def test_pause_twice_publishes_once(self, state_machine, channel, recorder, sample_tracks):
        """Should produce a single is_playing=False transition for two pauses."""
        await start_playing(state_machine, channel, sample_tracks)
        recorder.clear()

        publish(channel, PauseCommand())
        publish(channel, PauseCommand())

        changed = recorder.of(Topics.STATE_CHANGED)
        assert len(changed) == 1
        assert changed[0].is_playing is False
        assert state_machine.session.state == SessionState.PAUSED

    async def test_play_while_playing_is_noop(self, state_machine, channel, transport, recorder, sample_tracks):
        """Should not restart playback when already playing."""
        await start_playing(state_machine, channel, sample_tracks)
        recorder.clear()
        plays_before = transport.calls.count("play")

        publish(channel, PlayCommand())
        await state_machine.wait_idle()

        assert transport.calls.count("play") == plays_before
        assert recorder.of(Topics.STATE_CHANGED) == []

    async def test_play_with_index_switches_track(self, state_machine, channel, transport, sample_tracks):
        """Should load and play the requested track."""
        await start_paused(state_machine, sample_tracks)

        publish(channel, PlayCommand(track_index=3))
        await state_machine.wait_idle()

        session = state_machine.session
        assert session.current_index == 3
        assert session.state == SessionState.PLAYING
        assert "load:track-3" in transport.calls

    async def test_play_with_invalid_index_is_ignored(self, state_machine, channel, recorder, sample_tracks):
        """Should ignore commands addressing a track outside the sequence."""
        await start_paused(state_machine, sample_tracks)
        generation = state_machine.session.generation
        recorder.clear()

        publish(channel, PlayCommand(track_index=9))
        publish(channel, PlayCommand(track_index=-1))
        publish(channel, NextCommand(track_index=5))
        await state_machine.wait_idle()

        assert state_machine.session.generation == generation
        assert state_machine.session.current_index == 0
        assert recorder.events == []

    async def test_stale_command_is_discarded(self, state_machine, channel, sample_tracks):
        """Should drop a command stamped with an older generation."""
        await start_playing(state_machine, channel, sample_tracks)
        stale = state_machine.session.generation - 1

        publish(channel, PauseCommand(issued_at_generation=stale))

        assert state_machine.session.state == SessionState.PLAYING

    async def test_current_generation_command_is_applied(self, state_machine, channel, sample_tracks):
        """Should apply a command stamped with the current generation."""
        await start_playing(state_machine, channel, sample_tracks)

        publish(channel, PauseCommand(issued_at_generation=state_machine.session.generation))

        assert state_machine.session.state == SessionState.PAUSED

    async def test_play_during_load_joins_it(self, state_machine, channel, transport, sample_tracks):
        """Should start the track being loaded instead of reloading it."""
        transport.auto_ready = False
        await state_machine.start(sample_tracks)
        await settle()
        assert state_machine.session.state == SessionState.LOADING

        publish(channel, PlayCommand())
        transport.resolve_load(True)
        await state_machine.wait_idle()

        assert transport.calls.count("load:track-0") == 1
        assert state_machine.session.state == SessionState.PLAYING


# =============================================================================
# Navigation
# =============================================================================


class TestNavigation:
    """Tests for next/prev navigation and wraparound."""

    async def test_next_wraps_from_last_to_first(self, state_machine, channel, sample_tracks):
        """Should move from index 4 to index 0 on next."""
        await start_paused(state_machine, sample_tracks, initial_index=4)

        publish(channel, NextCommand())
        await state_machine.wait_idle()

        assert state_machine.session.current_index == 0

    async def test_prev_wraps_from_first_to_last(self, state_machine, channel, sample_tracks):
        """Should move from index 0 to index 4 on prev."""
        await start_paused(state_machine, sample_tracks)

        publish(channel, PrevCommand())
        await state_machine.wait_idle()

        assert state_machine.session.current_index == 4

    async def test_next_publishes_track_changed_and_plays(
        self, state_machine, channel, recorder, sample_tracks
    ):
        """Should announce the switch, then publish is_playing=True for the new index."""
        await start_paused(state_machine, sample_tracks, initial_index=1)
        recorder.clear()

        publish(channel, NextCommand())
        await state_machine.wait_idle()

        track_changed = recorder.of(Topics.STATE_TRACK_CHANGED)
        assert len(track_changed) == 1
        assert track_changed[0].track_index == 2
        assert track_changed[0].direction == Direction.NEXT

        changed = recorder.of(Topics.STATE_CHANGED)
        assert changed[-1].is_playing is True
        assert changed[-1].track_index == 2

    async def test_prev_after_three_seconds_restarts_track(
        self, state_machine, channel, transport, recorder, sample_tracks
    ):
        """Should seek to 0 on the same track when position is past 3s."""
        await start_playing(state_machine, channel, sample_tracks, initial_index=2)
        transport.set_position(5.0)
        generation = state_machine.session.generation
        recorder.clear()

        publish(channel, PrevCommand())
        await state_machine.wait_idle()

        session = state_machine.session
        assert session.current_index == 2
        assert session.state == SessionState.PLAYING
        assert session.generation == generation
        assert transport.position == 0.0
        assert recorder.of(Topics.STATE_TRACK_CHANGED) == []
        assert recorder.of(Topics.STATE_CHANGED) == []
        assert recorder.of(Topics.STATE_PROGRESS)[-1].current_time == 0.0

    async def test_prev_within_three_seconds_moves_back(self, state_machine, channel, transport, sample_tracks):
        """Should go to the previous index when position is at most 3s."""
        await start_playing(state_machine, channel, sample_tracks, initial_index=2)
        transport.set_position(1.0)

        publish(channel, PrevCommand())
        await state_machine.wait_idle()

        assert state_machine.session.current_index == 1

    async def test_prev_exactly_at_threshold_moves_back(self, state_machine, channel, transport, sample_tracks):
        """Should treat exactly 3.0s as not past the threshold."""
        await start_playing(state_machine, channel, sample_tracks, initial_index=2)
        transport.set_position(3.0)

        publish(channel, PrevCommand())
        await state_machine.wait_idle()

        assert state_machine.session.current_index == 1

    async def test_prev_with_explicit_index_skips_restart_rule(
        self, state_machine, channel, transport, sample_tracks
    ):
        """Should honour an explicit target even past the restart threshold."""
        await start_playing(state_machine, channel, sample_tracks, initial_index=2)
        transport.set_position(10.0)

        publish(channel, PrevCommand(track_index=0))
        await state_machine.wait_idle()

        assert state_machine.session.current_index == 0

    async def test_ended_advances_to_next_track(self, state_machine, channel, transport, recorder, sample_tracks):
        """Should flush the final position, then play the next track."""
        await start_playing(state_machine, channel, sample_tracks, initial_index=1)
        recorder.clear()

        transport.emit_ended()
        await state_machine.wait_idle()

        progress = recorder.of(Topics.STATE_PROGRESS)
        assert progress[0].track_index == 1
        assert progress[0].current_time == pytest.approx(200.0)

        session = state_machine.session
        assert session.current_index == 2
        assert session.state == SessionState.PLAYING

    async def test_ended_on_last_track_wraps(self, state_machine, channel, transport, sample_tracks):
        """Should wrap to the first track after the last one ends."""
        await start_playing(state_machine, channel, sample_tracks, initial_index=4)

        transport.emit_ended()
        await state_machine.wait_idle()

        assert state_machine.session.current_index == 0


# =============================================================================
# Races
# =============================================================================


class TestGenerationGuard:
    """Tests for discarding superseded asynchronous completions."""

    async def test_next_then_prev_keeps_only_prev_outcome(self, channel, recorder, sample_tracks, settings_store, snapshot_store, playback_settings, clock):
        """Should let the late completion of next be discarded after prev won."""
        transport = ScriptedTransport(auto_play=False, reject_pending_on_load=False)
        machine = PlaybackStateMachine(
            channel=channel,
            transport=transport,
            settings_store=settings_store,
            snapshot_store=snapshot_store,
            settings=playback_settings,
            clock=clock,
        )
        await start_paused(machine, sample_tracks, initial_index=1)
        recorder.clear()

        publish(channel, NextCommand())
        await settle()
        publish(channel, PrevCommand())
        await settle()
        assert len(transport.pending_plays) == 2

        # prev's play resolves first, next's arrives late
        transport.resolve_play(1)
        await settle()
        transport.resolve_play(0)
        await machine.wait_idle()

        changed = recorder.of(Topics.STATE_CHANGED)
        assert len(changed) == 1
        assert changed[0].is_playing is True
        assert changed[0].track_index == 1
        assert machine.session.current_index == 1
        await machine.shutdown(preserve=False)

    async def test_pause_before_play_resolves_keeps_paused(self, state_machine, channel, transport, recorder, sample_tracks):
        """Should not re-assert playing when a pause lands first."""
        await start_paused(state_machine, sample_tracks)
        transport.auto_play = False
        recorder.clear()

        publish(channel, PlayCommand())
        await settle()
        publish(channel, PauseCommand())
        await state_machine.wait_idle()

        assert state_machine.session.state == SessionState.PAUSED
        assert all(not e.is_playing for e in recorder.of(Topics.STATE_CHANGED))

    async def test_rapid_next_loads_only_reach_last_target(self, state_machine, channel, transport, sample_tracks):
        """Should end on the target of the last of several rapid next commands."""
        await start_paused(state_machine, sample_tracks)

        for _ in range(3):
            publish(channel, NextCommand())
        await state_machine.wait_idle()

        assert state_machine.session.current_index == 3
        assert state_machine.session.state == SessionState.PLAYING


# =============================================================================
# Failures
# =============================================================================


class TestFailureFallback:
    """Tests for falling back to paused when a start fails."""

    async def test_rejected_play_falls_back_to_paused(self, state_machine, channel, transport, recorder, sample_tracks):
        """Should stay paused, publish a failure event and not retry."""
        await start_paused(state_machine, sample_tracks)
        transport.reject_reason = "blocked by autoplay policy"
        recorder.clear()

        publish(channel, PlayCommand())
        await state_machine.wait_idle()

        session = state_machine.session
        assert session.state == SessionState.PAUSED
        assert session.current_index == 0
        assert "blocked by autoplay policy" in session.last_failure

        failed = recorder.of(Topics.STATE_PLAYBACK_FAILED)
        assert len(failed) == 1
        assert failed[0].reason.startswith("rejected")
        assert recorder.of(Topics.STATE_CHANGED)[-1].is_playing is False
        assert transport.calls.count("play") == 1

    async def test_unavailable_resource_falls_back(self, state_machine, channel, transport, recorder, sample_tracks):
        """Should report not_ready when the resource never becomes ready."""
        await start_paused(state_machine, sample_tracks)
        transport.unavailable.add(sample_tracks[1].audio_url)
        recorder.clear()

        publish(channel, NextCommand())
        await state_machine.wait_idle()

        assert state_machine.session.state == SessionState.PAUSED
        assert state_machine.session.current_index == 1
        assert recorder.of(Topics.STATE_PLAYBACK_FAILED)[0].reason.startswith("not_ready")

    async def test_play_after_failed_load_reloads(self, state_machine, channel, transport, sample_tracks):
        """Should reload the current track when play follows a failed load."""
        await start_paused(state_machine, sample_tracks)
        transport.unavailable.add(sample_tracks[1].audio_url)
        publish(channel, NextCommand())
        await state_machine.wait_idle()

        transport.unavailable.clear()
        publish(channel, PlayCommand())
        await state_machine.wait_idle()

        assert transport.calls.count("load:track-1") == 2
        assert state_machine.session.state == SessionState.PLAYING

    async def test_ready_timeout_falls_back(self, channel, recorder, sample_tracks, settings_store, snapshot_store, clock):
        """Should give up after the ready timeout and report it."""
        transport = ScriptedTransport(auto_ready=False)
        machine = PlaybackStateMachine(
            channel=channel,
            transport=transport,
            settings_store=settings_store,
            snapshot_store=snapshot_store,
            settings=PlaybackSettings(ready_timeout_seconds=0.05),
            clock=clock,
        )
        await machine.start(sample_tracks)
        await asyncio.wait_for(machine.wait_idle(), timeout=2.0)

        assert machine.session.state == SessionState.PAUSED
        assert recorder.of(Topics.STATE_PLAYBACK_FAILED)[0].reason.startswith("timeout")
        await machine.shutdown(preserve=False)

    async def test_transport_failure_while_playing(self, state_machine, channel, transport, recorder, sample_tracks):
        """Should pause and publish a transport_error failure."""
        await start_playing(state_machine, channel, sample_tracks)
        recorder.clear()

        transport.emit_failed("decoder crashed")

        assert state_machine.session.state == SessionState.PAUSED
        failed = recorder.of(Topics.STATE_PLAYBACK_FAILED)
        assert failed[0].reason == "transport_error: decoder crashed"
        assert recorder.of(Topics.STATE_CHANGED)[-1].is_playing is False

    async def test_success_clears_last_failure(self, state_machine, channel, transport, sample_tracks):
        """Should clear the recorded failure once playback starts."""
        await start_paused(state_machine, sample_tracks)
        transport.reject_reason = "blocked"
        publish(channel, PlayCommand())
        await state_machine.wait_idle()

        transport.reject_reason = None
        publish(channel, PlayCommand())
        await state_machine.wait_idle()

        assert state_machine.session.last_failure is None
        assert state_machine.session.state == SessionState.PLAYING


# =============================================================================
# Volume, mute, seek, progress
# =============================================================================


class TestVolumeAndProgress:
    """Tests for volume/mute handling and progress reporting."""

    async def test_volume_zero_does_not_set_muted(self, state_machine, channel, recorder, sample_tracks):
        """Should keep is_muted independent from a zero volume."""
        await start_paused(state_machine, sample_tracks)

        publish(channel, SetVolumeCommand(level=0.0))

        event = recorder.of(Topics.STATE_VOLUME_CHANGED)[-1]
        assert event.volume == 0.0
        assert event.is_muted is False

    async def test_raising_volume_keeps_explicit_mute(self, state_machine, channel, transport, sample_tracks):
        """Should not clear an explicit mute when the volume goes back up."""
        await start_paused(state_machine, sample_tracks)

        publish(channel, SetMutedCommand(muted=True))
        publish(channel, SetVolumeCommand(level=0.0))
        publish(channel, SetVolumeCommand(level=0.6))

        session = state_machine.session
        assert session.is_muted is True
        assert session.volume == pytest.approx(0.6)
        assert transport.muted is True

    async def test_volume_is_clamped(self, state_machine, channel, transport, sample_tracks):
        """Should clamp out-of-range levels into [0, 1]."""
        await start_paused(state_machine, sample_tracks)

        publish(channel, SetVolumeCommand(level=1.7))
        assert state_machine.session.volume == 1.0
        publish(channel, SetVolumeCommand(level=-0.2))
        assert state_machine.session.volume == 0.0
        assert transport.volume == 0.0

    async def test_volume_change_is_persisted(self, state_machine, channel, settings_store, settings_repository, sample_tracks):
        """Should write volume and mute through to durable settings."""
        await start_paused(state_machine, sample_tracks)

        publish(channel, SetVolumeCommand(level=0.25))
        publish(channel, SetMutedCommand(muted=True))
        await settings_store.flush()

        stored = await settings_repository.load()
        assert stored.volume == pytest.approx(0.25)
        assert stored.is_muted is True

    async def test_volume_does_not_bump_generation(self, state_machine, channel, sample_tracks):
        """Should leave the generation alone for volume changes."""
        await start_playing(state_machine, channel, sample_tracks)
        generation = state_machine.session.generation

        publish(channel, SetVolumeCommand(level=0.4))
        publish(channel, SeekCommand(time=12.0))

        assert state_machine.session.generation == generation

    async def test_progress_is_throttled(self, state_machine, channel, transport, recorder, clock, sample_tracks):
        """Should publish at most one position per throttle window."""
        await start_playing(state_machine, channel, sample_tracks)
        clock.advance(1.0)
        recorder.clear()

        for position in (1.0, 1.05, 1.1, 1.15):
            transport.emit_position(position)
            clock.advance(0.05)
        clock.advance(0.3)
        transport.emit_position(1.6)

        times = [e.current_time for e in recorder.of(Topics.STATE_PROGRESS)]
        assert times == [1.0, 1.6]

    async def test_seek_publishes_immediately(self, state_machine, channel, transport, recorder, clock, sample_tracks):
        """Should bypass the throttle window on seek."""
        await start_playing(state_machine, channel, sample_tracks)
        transport.emit_position(2.0)
        recorder.clear()

        publish(channel, SeekCommand(time=60.0))

        progress = recorder.of(Topics.STATE_PROGRESS)
        assert len(progress) == 1
        assert progress[0].current_time == 60.0
        assert state_machine.session.current_time == 60.0

    async def test_seek_is_clamped_to_duration(self, state_machine, channel, transport, sample_tracks):
        """Should clamp seeks past the end to the duration."""
        await start_playing(state_machine, channel, sample_tracks)

        publish(channel, SeekCommand(time=9999.0))

        assert state_machine.session.current_time == pytest.approx(200.0)

    async def test_seek_before_duration_is_known_is_ignored(
        self, state_machine, channel, transport, recorder, sample_tracks
    ):
        """Should not touch the transport while the next track is still loading."""
        await start_playing(state_machine, channel, sample_tracks)
        transport.auto_ready = False
        publish(channel, NextCommand())
        await settle()
        recorder.clear()

        publish(channel, SeekCommand(time=30.0))

        assert not any(call.startswith("seek:") for call in transport.calls)
        assert recorder.of(Topics.STATE_PROGRESS) == []

        transport.resolve_load(True)
        await state_machine.wait_idle()
        assert state_machine.session.current_index == 1
        assert transport.position == 0.0


# =============================================================================
# Navigation persistence
# =============================================================================


class TestNavigationSnapshot:
    """Tests for preserving and restoring across a view teardown."""

    async def test_snapshot_restores_position_and_playing(
        self, state_machine, channel, transport, snapshot_store, snapshot_repository, recorder, sample_tracks
    ):
        """Should seek to the saved position, play once ready, then delete the snapshot."""
        channel.publish(
            Topics.SESSION_PRESERVE,
            SessionPreserveRequested(is_playing=True, track_index=2, position_seconds=42.0),
        )
        await snapshot_store.flush()

        await start_paused(state_machine, sample_tracks, initial_index=2)

        session = state_machine.session
        assert session.current_index == 2
        assert session.state == SessionState.PLAYING
        assert transport.position == pytest.approx(42.0)
        assert transport.calls.index("seek:42.0") < transport.calls.index("play")
        assert await snapshot_repository.peek() is None
        assert await snapshot_store.consume(2) is None

    async def test_snapshot_for_other_track_is_discarded(
        self, state_machine, snapshot_repository, transport, sample_tracks
    ):
        """Should ignore and delete a snapshot taken on another index."""
        await snapshot_repository.save(
            NavigationSnapshot(was_playing=True, track_index=4, position_seconds=10.0)
        )

        await start_paused(state_machine, sample_tracks, initial_index=1)

        assert state_machine.session.state == SessionState.PAUSED
        assert transport.position == 0.0
        assert await snapshot_repository.peek() is None

    async def test_shutdown_preserves_exact_position(
        self, state_machine, channel, transport, snapshot_repository, sample_tracks
    ):
        """Should store the transport's exact position on shutdown."""
        await start_playing(state_machine, channel, sample_tracks, initial_index=3)
        transport.set_position(37.25)

        await state_machine.shutdown(preserve=True)

        snapshot = await snapshot_repository.peek()
        assert snapshot == NavigationSnapshot(was_playing=True, track_index=3, position_seconds=37.25)
        assert "unload" in transport.calls
        assert state_machine.session.state == SessionState.IDLE

    async def test_shutdown_stops_reacting_to_commands(self, state_machine, channel, transport, sample_tracks):
        """Should unsubscribe from the channel on shutdown."""
        await start_paused(state_machine, sample_tracks)
        await state_machine.shutdown(preserve=False)
        calls = list(transport.calls)

        publish(channel, PlayCommand())
        await settle()

        assert transport.calls == calls
        assert channel.subscriber_count(Topics.COMMAND_PLAY) == 0

    async def test_restart_after_shutdown_resumes(
        self, state_machine, channel, transport, sample_tracks
    ):
        """Should resume on the same machine after a preserving shutdown."""
        await start_playing(state_machine, channel, sample_tracks, initial_index=2)
        transport.set_position(15.0)
        await state_machine.shutdown(preserve=True)

        await start_paused(state_machine, sample_tracks, initial_index=2)

        assert state_machine.session.state == SessionState.PLAYING
        assert transport.position == pytest.approx(15.0)

    async def test_restart_on_pending_index_resumes_later_track(
        self, state_machine, channel, transport, snapshot_store, sample_tracks
    ):
        """Should resume on the preserved track when the restart asks the store for it."""
        await start_playing(state_machine, channel, sample_tracks, initial_index=3)
        transport.set_position(42.0)
        await state_machine.shutdown(preserve=True)

        initial_index = await snapshot_store.pending_index()
        await start_paused(state_machine, sample_tracks, initial_index=initial_index)

        session = state_machine.session
        assert initial_index == 3
        assert session.current_index == 3
        assert session.state == SessionState.PLAYING
        assert transport.position == pytest.approx(42.0)
        assert await snapshot_store.pending_index() is None
