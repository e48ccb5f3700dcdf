"""Rate limiter for outward position publication."""

from __future__ import annotations

import time
from collections.abc import Callable


class ProgressThrottle:
    """Leading-edge throttle for position updates.

    ``offer`` forwards a position only when at least ``interval_ms`` passed
    since the last forwarded one. ``flush`` forwards unconditionally and
    restarts the window; callers use it at discontinuities (seek, pause,
    track end) so the last position before the jump is never dropped.
    """

    def __init__(
        self,
        interval_ms: int,
        emit: Callable[[float], None],
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._interval = max(0, interval_ms) / 1000.0
        self._emit = emit
        self._clock = clock
        self._last_emitted_at: float | None = None

    @property
    def interval_seconds(self) -> float:
        return self._interval

    def offer(self, position: float) -> bool:
        now = self._clock()
        if self._last_emitted_at is not None and now - self._last_emitted_at < self._interval:
            return False
        self._last_emitted_at = now
        self._emit(position)
        return True

    def flush(self, position: float) -> None:
        self._last_emitted_at = self._clock()
        self._emit(position)

    def reset(self) -> None:
        """Forget the window so the next offer is forwarded immediately."""
        self._last_emitted_at = None
