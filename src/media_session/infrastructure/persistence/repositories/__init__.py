"""SQLite repository implementations."""

from media_session.infrastructure.persistence.repositories.settings_repository import (
    SQLiteDurableSettingsRepository,
)
from media_session.infrastructure.persistence.repositories.snapshot_repository import (
    SQLiteNavigationSnapshotRepository,
)

__all__ = [
    "SQLiteNavigationSnapshotRepository",
    "SQLiteDurableSettingsRepository",
]
