"""Synchronous in-process bus for audit notifications."""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Callable

logger = logging.getLogger(__name__)


class NotificationBus:
    """Publish/subscribe bus connecting audits to notification senders.

    Handlers run synchronously in registration order.  A failing handler is
    logged and skipped so one broken sender cannot fail the audit that
    published the notification.
    """

    def __init__(self) -> None:
        self._subscribers: dict[type, list[Callable[[Any], None]]] = defaultdict(list)

    def subscribe(self, message_type: type, handler: Callable[[Any], None]) -> None:
        self._subscribers[message_type].append(handler)

    def publish(self, message: Any) -> int:
        """Deliver *message* to its subscribers; return how many succeeded."""
        delivered = 0
        for handler in self._subscribers.get(type(message), []):
            try:
                handler(message)
            except Exception:
                logger.exception(
                    "Notification handler %r failed for %s",
                    handler,
                    type(message).__name__,
                )
                continue
            delivered += 1
        return delivered
