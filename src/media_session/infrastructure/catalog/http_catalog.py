"""Track catalog adapters: HTTP (remote song API) and static (in-memory)."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from media_session.application.interfaces.catalog import TrackCatalog
from media_session.config.settings import CatalogSettings
from media_session.domain.playback.entities import Track
from media_session.domain.shared.constants import CatalogFields
from media_session.domain.shared.exceptions import CatalogUnavailableError
from media_session.domain.shared.messages import ErrorMessages, LogTemplates

logger = logging.getLogger(__name__)


class CatalogSongItem(BaseModel):
    """One song document as served by the catalog API."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(..., min_length=1, alias=CatalogFields.ID)
    title: str = Field(..., min_length=1)
    artist: str = ""
    url: str = Field(..., min_length=1)
    cover_url: str | None = Field(default=None, alias=CatalogFields.COVER_URL)
    note: str | None = None

    def to_domain(self) -> Track:
        return Track(
            id=self.id,
            title=self.title,
            artist=self.artist,
            audio_url=self.url,
            cover_url=self.cover_url,
            note=self.note or "",
        )


class HttpTrackCatalog(TrackCatalog):
    """Reads the ordered track list with a single GET against the catalog API."""

    def __init__(
        self,
        settings: CatalogSettings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings or CatalogSettings()
        self._client = client
        self._owns_client = client is None

    async def list_tracks(self) -> list[Track]:
        url = self._settings.base_url
        payload = await self._fetch(url)

        if not isinstance(payload, list):
            raise CatalogUnavailableError(ErrorMessages.CATALOG_BAD_PAYLOAD, url=url)

        tracks: list[Track] = []
        for entry in payload:
            try:
                tracks.append(CatalogSongItem.model_validate(entry).to_domain())
            except ValidationError as e:
                logger.warning(LogTemplates.CATALOG_SKIPPED_ENTRY, e.errors()[0]["msg"])

        logger.info(LogTemplates.CATALOG_FETCHED, len(tracks), url)
        return tracks

    async def _fetch(self, url: str) -> Any:
        client = self._get_client()
        try:
            response = await client.get(url)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPError as e:
            raise CatalogUnavailableError(
                ErrorMessages.CATALOG_UNREACHABLE.format(url=url, detail=e), url=url
            ) from e
        except ValueError as e:
            # Body was not JSON
            raise CatalogUnavailableError(ErrorMessages.CATALOG_BAD_PAYLOAD, url=url) from e

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._settings.timeout_seconds)
        return self._client

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
        self._client = None


class StaticTrackCatalog(TrackCatalog):
    """Serves a fixed, in-memory track sequence."""

    def __init__(self, tracks: Iterable[Track] = ()) -> None:
        self._tracks = list(tracks)

    async def list_tracks(self) -> list[Track]:
        return list(self._tracks)

    @classmethod
    def from_documents(cls, documents: Iterable[dict[str, Any]]) -> StaticTrackCatalog:
        return cls(CatalogSongItem.model_validate(doc).to_domain() for doc in documents)
