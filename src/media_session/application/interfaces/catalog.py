"""Port interface for the external track catalog."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ...domain.playback.entities import Track


class TrackCatalog(ABC):
    """Read-only source of the ordered track sequence."""

    @abstractmethod
    async def list_tracks(self) -> list[Track]:
        """Fetch the ordered track sequence.

        Raises:
            CatalogUnavailableError: If the catalog cannot be reached or
                returns an unusable payload.
        """
        ...
