"""
Shared Domain Kernel

Contains the event channel and the exceptions shared across the domain.
"""

from media_session.domain.shared.events import ChannelEvent, EventChannel, Topics
from media_session.domain.shared.exceptions import (
    CatalogUnavailableError,
    DomainError,
    InvalidCommandTargetError,
    InvalidOperationError,
    PlaybackRejectedError,
    StaleNavigationSnapshotError,
    SupersededOperationError,
)

__all__ = [
    "ChannelEvent",
    "EventChannel",
    "Topics",
    "DomainError",
    "PlaybackRejectedError",
    "SupersededOperationError",
    "InvalidCommandTargetError",
    "StaleNavigationSnapshotError",
    "CatalogUnavailableError",
    "InvalidOperationError",
]
