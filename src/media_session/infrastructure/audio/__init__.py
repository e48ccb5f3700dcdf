"""Audio infrastructure - virtual transport."""

from media_session.infrastructure.audio.virtual_transport import (
    VirtualTransport,
    VirtualTransportConfig,
)

__all__ = [
    "VirtualTransport",
    "VirtualTransportConfig",
]
