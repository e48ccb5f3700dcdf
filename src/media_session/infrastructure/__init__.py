"""Infrastructure layer - external systems integration.

This layer contains implementations for:
- Persistence (SQLite repositories)
- Audio (virtual clock-driven transport)
- Catalog (HTTP song API client)
"""

from media_session.infrastructure.audio.virtual_transport import VirtualTransport
from media_session.infrastructure.catalog.http_catalog import HttpTrackCatalog
from media_session.infrastructure.persistence.database import Database

__all__ = [
    "VirtualTransport",
    "HttpTrackCatalog",
    "Database",
]
