"""View-facing command producers and state observers."""

from media_session.application.surfaces.observer import PlaybackObserver
from media_session.application.surfaces.producer import CommandProducer
from media_session.application.surfaces.transport_bar import TransportBarModel

__all__ = [
    "CommandProducer",
    "PlaybackObserver",
    "TransportBarModel",
]
