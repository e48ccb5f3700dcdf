"""Reusable Pydantic Annotated types for domain-wide validation.

Models annotate their fields with these instead of repeating constraints::

    class NavigationSnapshot(BaseModel):
        track_index: TrackIndex
        position_seconds: PositionSeconds = 0.0
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated

from pydantic import BeforeValidator, Field

# ── Playback values ─────────────────────────────────────────────────

TrackIndex = Annotated[int, Field(ge=0)]
"""Zero-based position in the ordered track sequence."""

Generation = Annotated[int, Field(ge=0)]
"""Monotonic session generation counter."""

VolumeLevel = Annotated[float, Field(ge=0.0, le=1.0)]
"""Output volume in [0.0, 1.0]."""

PositionSeconds = Annotated[float, Field(ge=0.0)]
"""Playback position in seconds."""


# ── Catalog strings ─────────────────────────────────────────────────

NonEmptyStr = Annotated[str, Field(min_length=1)]
"""String with at least one character."""

TrackTitleStr = Annotated[str, Field(min_length=1, max_length=500)]
"""Track title: 1-500 characters."""


# ── Timestamps ──────────────────────────────────────────────────────


def _ensure_utc(v: object) -> object:
    if isinstance(v, datetime):
        if v.tzinfo is None:
            raise ValueError("timestamp must be timezone-aware")
        return v.astimezone(UTC)
    return v


UtcDatetimeField = Annotated[datetime, BeforeValidator(_ensure_utc)]
"""Timezone-aware datetime, normalised to UTC; ISO strings are parsed by pydantic."""
