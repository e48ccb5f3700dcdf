"""Centralized constants for environment keys, storage keys and SQL pragmas."""

from __future__ import annotations


class ConfigKeys:
    """Environment variable key names read outside of Settings."""

    NO_COLOR = "NO_COLOR"


class SettingsKeys:
    """Row keys in the durable_settings table."""

    VOLUME = "volume"
    IS_MUTED = "is_muted"


class SQLPragmas:
    """SQLite PRAGMA statements."""

    JOURNAL_MODE_WAL = "PRAGMA journal_mode=WAL"
    BUSY_TIMEOUT = "PRAGMA busy_timeout={timeout}"


class CatalogFields:
    """Keys in the remote catalog's song documents that differ from ours."""

    ID = "_id"
    COVER_URL = "coverUrl"
