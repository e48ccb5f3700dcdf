# ruff: noqa: N999
"""
Domain Layer

Contains pure playback logic organized by bounded contexts:
- shared/: Event channel, cross-cutting types, messages and exceptions
- playback/: Tracks, the playback session and its navigation rules
"""

from media_session.domain.shared.events import EventChannel, Topics
from media_session.domain.shared.exceptions import DomainError

__all__ = [
    "EventChannel",
    "Topics",
    "DomainError",
]
