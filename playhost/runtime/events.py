"""In-process notification bus for user-facing runtime notices."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, TypeVar

from playhost.api.events import Subscription

TEvent = TypeVar("TEvent")
NoticeHandler = Callable[[Any], None]

_LOG = logging.getLogger("playhost.notifications")


class NotificationBus:
    """Type-keyed observer registry; handlers run synchronously on publish."""

    def __init__(self) -> None:
        self._next_id = 1
        self._subscriptions: dict[int, tuple[type[object], NoticeHandler]] = {}
        self._published = 0

    @property
    def published_count(self) -> int:
        return self._published

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def subscribe(
        self,
        event_type: type[TEvent],
        handler: Callable[[TEvent], None],
    ) -> Subscription:
        """Subscribe handler for an event type (subclasses included)."""
        sub_id = self._next_id
        self._next_id += 1
        self._subscriptions[sub_id] = (event_type, handler)
        return Subscription(sub_id)

    def unsubscribe(self, subscription: Subscription) -> None:
        """Remove a subscription if present."""
        self._subscriptions.pop(subscription.id, None)

    def publish(self, event: object) -> int:
        """Publish one event and return number of invoked handlers."""
        self._published += 1
        invoked = 0
        for subscribed_type, handler in tuple(self._subscriptions.values()):
            if isinstance(event, subscribed_type):
                handler(event)
                invoked += 1
        if invoked == 0:
            _LOG.debug("notice_unobserved type=%s", type(event).__name__)
        return invoked
