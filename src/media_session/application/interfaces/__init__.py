"""
Application Interfaces (Ports)

Abstract interfaces that define contracts between the application
layer and infrastructure adapters.
"""

from media_session.application.interfaces.catalog import TrackCatalog
from media_session.application.interfaces.transport import Transport

__all__ = [
    "Transport",
    "TrackCatalog",
]
