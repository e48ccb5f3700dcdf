"""Catalog infrastructure - HTTP and in-memory track sources."""

from media_session.infrastructure.catalog.http_catalog import (
    CatalogSongItem,
    HttpTrackCatalog,
    StaticTrackCatalog,
)

__all__ = [
    "CatalogSongItem",
    "HttpTrackCatalog",
    "StaticTrackCatalog",
]
