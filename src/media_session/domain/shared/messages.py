"""Centralized message constants for error messages, validation, and log output."""

from __future__ import annotations


class ErrorMessages:
    """Error messages for exceptions and validation failures."""

    # Playback Errors
    RESOURCE_NOT_READY = "Resource is not ready to play"
    NO_RESOURCE_LOADED = "No resource is loaded"
    RESOURCE_REPLACED = "Resource was replaced before playback started"
    PLAY_INTERRUPTED = "Play request interrupted by pause"
    READY_TIMEOUT = "Resource did not become ready within {seconds}s"
    DECODE_FAILED = "Decoder failed for {locator}"
    PLAYBACK_BLOCKED = "Playback blocked for {locator}"
    INVALID_TRACK_INDEX = "Track index {index} is outside the sequence of {count} tracks"
    SUPERSEDED = "{operation} issued at generation {captured} superseded by generation {current}"

    # Snapshot Errors
    SNAPSHOT_MALFORMED = "Navigation snapshot is malformed: {detail}"
    SNAPSHOT_INDEX_MISMATCH = "Navigation snapshot targets track {stored}, session starts at {expected}"

    # Catalog Errors
    CATALOG_UNREACHABLE = "Track catalog at {url} is unreachable: {detail}"
    CATALOG_BAD_PAYLOAD = "Track catalog returned an unexpected payload"

    # Settings Validation Errors
    INVALID_DATABASE_URL = "Database URL must start with sqlite://"
    INVALID_LOG_LEVEL = "Invalid log level: {level}. Must be one of {valid_levels}"
    INVALID_CATALOG_URL = "Catalog URL must start with http:// or https://"


class LogTemplates:
    """Log message templates for structured logging.

    Use these with logger.info(), logger.error(), etc. and pass values as parameters
    for proper log formatting and structured logging support.
    """

    # Database Lifecycle
    DATABASE_INITIALIZED = "Database initialized at %s"
    DATABASE_CLOSED = "Database manager closed"

    # Event Channel
    CHANNEL_SUBSCRIBED = "Subscribed handler to %s"
    CHANNEL_UNSUBSCRIBED = "Unsubscribed handler from %s"
    CHANNEL_NO_SUBSCRIBERS = "No subscribers for %s, event dropped"
    CHANNEL_PUBLISHING = "Publishing %s to %d handlers"
    CHANNEL_HANDLER_FAILED = "Error in handler for %s: %s"
    CHANNEL_CLEARED = "Cleared all channel subscriptions"

    # Session Lifecycle
    SESSION_STARTED = "Session started with %d tracks at index %s"
    SESSION_SHUTDOWN = "Session shut down (preserve=%s)"
    SESSION_ALREADY_STARTED = "Session already started"

    # Commands
    COMMAND_RECEIVED = "Command %s received (index=%s, generation=%s)"
    COMMAND_STALE = "Discarding stale %s issued at generation %s (current %s)"
    COMMAND_INVALID_TARGET = "Ignoring %s: %s"
    COMMAND_NO_TRACKS = "Ignoring %s: track sequence is empty"
    COMMAND_NO_RESOURCE = "Ignoring %s: no resource loaded"
    COMMAND_NO_DURATION = "Ignoring %s: duration not known yet"
    COMMAND_NOOP = "Ignoring %s in state %s"

    # Transitions
    STATE_TRANSITION = "Session %s -> %s (index=%s, generation=%d)"
    TRACK_SWITCH = "Switching to track %d (%s) direction=%s generation=%d"
    TRACK_RESTART = "Restarting track %d at position 0 (was %.2fs)"
    OPERATION_SUPERSEDED = "Discarding completion: %s"
    PLAYBACK_REJECTED = "Playback rejected for track %s: %s"
    PLAYBACK_STARTED = "Playback started for track %d (%s)"
    PLAYBACK_PAUSED = "Playback paused at %.2fs on track %s"
    RESOURCE_NOT_READY = "Resource for track %s did not become ready"
    TRACK_ENDED = "Track %s ended, advancing"
    TRANSPORT_FAILED = "Transport reported failure on track %s: %s"

    # Persistence
    SNAPSHOT_WRITTEN = "Navigation snapshot written (track=%s, position=%.2f, playing=%s)"
    SNAPSHOT_CONSUMED = "Navigation snapshot consumed (track=%s, position=%.2f, playing=%s)"
    SNAPSHOT_STALE = "Ignoring navigation snapshot: %s"
    SNAPSHOT_RESTORED = "Restored position %.2fs on track %d (resume=%s)"
    SETTINGS_LOADED = "Durable settings loaded (volume=%.2f, muted=%s)"
    SETTINGS_DEFAULTED = "No durable settings stored, using defaults"
    SETTINGS_SAVED = "Durable settings saved (volume=%.2f, muted=%s)"
    SETTINGS_SAVE_FAILED = "Failed to persist durable settings"

    # Transport
    TRANSPORT_LOADING = "Loading resource %s"
    TRANSPORT_READY = "Resource %s ready (duration=%s)"
    TRANSPORT_UNLOADED = "Resource unloaded"

    # Catalog
    CATALOG_FETCHED = "Fetched %d tracks from %s"
    CATALOG_SKIPPED_ENTRY = "Skipping malformed catalog entry: %s"

    # Application Lifecycle
    APP_STARTING = "Starting media session ({environment})"
    APP_STOPPED = "Media session stopped"
    APP_KEYBOARD_INTERRUPT = "Interrupted, shutting down"
    APP_FATAL_ERROR = "Fatal error: %s"
