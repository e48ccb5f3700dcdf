"""
Playback Domain Services

Stateless rules that the state machine applies: index wraparound, the
restart-versus-go-back rule, and position/volume clamping.
"""

from __future__ import annotations

from media_session.domain.shared.exceptions import InvalidCommandTargetError


class PlaybackRules:
    """Domain service for track navigation and transport value rules."""

    RESTART_THRESHOLD_SECONDS = 3.0

    @classmethod
    def next_index(cls, current: int, count: int) -> int:
        """Index after *current*, wrapping to the first track."""
        return (current + 1) % count

    @classmethod
    def previous_index(cls, current: int, count: int) -> int:
        """Index before *current*, wrapping to the last track."""
        return (current - 1 + count) % count

    @classmethod
    def should_restart(cls, position: float, threshold: float | None = None) -> bool:
        """Whether ``prev`` restarts the current track instead of moving back.

        Args:
            position: Current playback position in seconds.
            threshold: Override for the restart threshold.

        Returns:
            True when the position is strictly past the threshold.
        """
        limit = cls.RESTART_THRESHOLD_SECONDS if threshold is None else threshold
        return position > limit

    @classmethod
    def validate_target(cls, index: int, count: int) -> int:
        """Return *index* if it addresses a track, otherwise raise."""
        if not 0 <= index < count:
            raise InvalidCommandTargetError(index, count)
        return index

    @classmethod
    def clamp_position(cls, time: float, duration: float | None) -> float | None:
        """Clamp a seek target to ``[0, duration]``; None when duration is unknown."""
        if duration is None:
            return None
        return max(0.0, min(float(time), float(duration)))

    @classmethod
    def clamp_volume(cls, level: float) -> float:
        return max(0.0, min(1.0, float(level)))
