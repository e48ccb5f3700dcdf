"""Base exception classes for domain-level errors."""

from __future__ import annotations

from media_session.domain.shared.messages import ErrorMessages


class DomainError(Exception):
    """Base exception for all domain-level errors."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__


class PlaybackRejectedError(DomainError):
    """Raised by a transport when ``play()`` cannot start playback.

    Recoverable: the session falls back to paused and never retries on its own.
    """

    def __init__(self, reason: str, track_index: int | None = None) -> None:
        super().__init__(reason, code="PLAYBACK_REJECTED")
        self.reason = reason
        self.track_index = track_index


class SupersededOperationError(DomainError):
    """An asynchronous completion arrived after a newer generation took over."""

    def __init__(self, operation: str, captured: int, current: int) -> None:
        super().__init__(
            ErrorMessages.SUPERSEDED.format(operation=operation, captured=captured, current=current),
            code="SUPERSEDED_OPERATION",
        )
        self.operation = operation
        self.captured = captured
        self.current = current


class InvalidCommandTargetError(DomainError):
    """A command referenced a track index outside the sequence."""

    def __init__(self, index: int, count: int) -> None:
        super().__init__(
            ErrorMessages.INVALID_TRACK_INDEX.format(index=index, count=count),
            code="INVALID_COMMAND_TARGET",
        )
        self.index = index
        self.count = count


class StaleNavigationSnapshotError(DomainError):
    """A navigation snapshot is malformed or targets another track."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="STALE_NAVIGATION_SNAPSHOT")


class CatalogUnavailableError(DomainError):
    """The external track catalog could not be read."""

    def __init__(self, message: str, url: str | None = None) -> None:
        super().__init__(message, code="CATALOG_UNAVAILABLE")
        self.url = url


class InvalidOperationError(DomainError):
    """Raised when an operation is invalid in the current state."""

    def __init__(self, operation: str, current_state: str, message: str | None = None) -> None:
        msg = message or f"Cannot perform '{operation}' in state '{current_state}'"
        super().__init__(msg, code="INVALID_OPERATION")
        self.operation = operation
        self.current_state = current_state
