"""Time helpers: UTC timestamps for payloads and rows, clock text for display."""

from __future__ import annotations

from datetime import UTC, datetime


def utcnow() -> datetime:
    """Timezone-aware current time in UTC."""
    return datetime.now(UTC)


def utc_isoformat(value: datetime | None = None) -> str:
    """ISO 8601 text with an explicit ``+00:00`` offset, for stored timestamps."""
    if value is None:
        value = utcnow()
    elif value.tzinfo is None:
        raise ValueError("datetime must be timezone-aware (UTC)")
    return value.astimezone(UTC).isoformat()


def format_clock(seconds: float | None) -> str:
    """Render a position as ``M:SS`` (``H:MM:SS`` past an hour)."""
    if seconds is None or seconds < 0:
        return "0:00"

    hours, remainder = divmod(int(seconds), 3600)
    minutes, secs = divmod(remainder, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"
