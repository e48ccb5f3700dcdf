"""In-process event channel for publishing and subscribing to topic payloads."""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from media_session.domain.shared.datetime_utils import utcnow
from media_session.domain.shared.messages import LogTemplates
from media_session.domain.shared.types import UtcDatetimeField

logger = logging.getLogger(__name__)

Handler = Callable[[Any], None]
Unsubscribe = Callable[[], None]


class ChannelEvent(BaseModel):
    """Base class for every payload carried by the channel.

    Payloads are frozen and serialize with camelCase keys so they match the
    topic catalog (``trackIndex``, ``isPlaying`` ...).
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    timestamp: UtcDatetimeField = Field(default_factory=utcnow)


class Topics:
    """Topic catalog.

    Producers publish ``command.*``; the state machine is the only publisher
    of ``state.*``; departing views publish ``session.preserve``.
    """

    COMMAND_PLAY = "command.play"
    COMMAND_PAUSE = "command.pause"
    COMMAND_NEXT = "command.next"
    COMMAND_PREV = "command.prev"
    COMMAND_SEEK = "command.seek"
    COMMAND_VOLUME = "command.volume"
    COMMAND_MUTE = "command.mute"

    STATE_CHANGED = "state.changed"
    STATE_PROGRESS = "state.progress"
    STATE_TRACK_CHANGED = "state.track_changed"
    STATE_PLAYBACK_FAILED = "state.playback_failed"
    STATE_VOLUME_CHANGED = "state.volume_changed"

    SESSION_PRESERVE = "session.preserve"

    COMMANDS: tuple[str, ...] = (
        COMMAND_PLAY,
        COMMAND_PAUSE,
        COMMAND_NEXT,
        COMMAND_PREV,
        COMMAND_SEEK,
        COMMAND_VOLUME,
        COMMAND_MUTE,
    )


class _Subscription:
    __slots__ = ("topic", "handler", "active")

    def __init__(self, topic: str, handler: Handler) -> None:
        self.topic = topic
        self.handler = handler
        self.active = True


class EventChannel:
    """Synchronous in-memory pub/sub channel.

    ``publish`` fans out to the handlers subscribed at the moment it is called,
    in subscription order, and returns once all of them ran. Handlers added
    during a publish only see later events. Topics without subscribers drop
    the event. Exceptions in handlers are logged but do not prevent other
    handlers from running.
    """

    def __init__(self) -> None:
        self._subscriptions: dict[str, list[_Subscription]] = defaultdict(list)

    def subscribe(self, topic: str, handler: Handler) -> Unsubscribe:
        subscription = _Subscription(topic, handler)
        self._subscriptions[topic].append(subscription)
        logger.debug(LogTemplates.CHANNEL_SUBSCRIBED, topic)

        def unsubscribe() -> None:
            self._remove(subscription)

        return unsubscribe

    def _remove(self, subscription: _Subscription) -> None:
        if not subscription.active:
            return
        subscription.active = False
        subscriptions = self._subscriptions.get(subscription.topic, [])
        if subscription in subscriptions:
            subscriptions.remove(subscription)
        logger.debug(LogTemplates.CHANNEL_UNSUBSCRIBED, subscription.topic)

    def publish(self, topic: str, payload: Any = None) -> None:
        subscriptions = list(self._subscriptions.get(topic, ()))

        if not subscriptions:
            logger.debug(LogTemplates.CHANNEL_NO_SUBSCRIBERS, topic)
            return

        logger.debug(LogTemplates.CHANNEL_PUBLISHING, topic, len(subscriptions))

        for subscription in subscriptions:
            # Unsubscribed by an earlier handler of this same publish.
            if not subscription.active:
                continue
            try:
                subscription.handler(payload)
            except Exception as e:
                logger.exception(LogTemplates.CHANNEL_HANDLER_FAILED, topic, e)

    def subscriber_count(self, topic: str) -> int:
        return len(self._subscriptions.get(topic, ()))

    def clear(self) -> None:
        """Remove all subscriptions."""
        for subscriptions in self._subscriptions.values():
            for subscription in subscriptions:
                subscription.active = False
        self._subscriptions.clear()
        logger.debug(LogTemplates.CHANNEL_CLEARED)
