"""User-visible notification channel (toast equivalent).

Fire-and-forget: senders never learn whether a notification was shown.
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol

from savanna.core.auth.constants import NOTIFICATION_EVENT

logger = logging.getLogger(__name__)

VARIANT_DEFAULT = "default"
VARIANT_DESTRUCTIVE = "destructive"


class Notifier(Protocol):
    def notify(self, title: str, description: str = "", variant: str = VARIANT_DEFAULT) -> None: ...


class NullNotifier:
    def notify(self, title: str, description: str = "", variant: str = VARIANT_DEFAULT) -> None:
        logger.debug("Notification: %s - %s", title, description)


class EventBusNotifier:
    """Publish notifications as transient ``ui.notification`` events."""

    def __init__(self, client_id: Optional[str] = None):
        self.client_id = client_id

    def notify(self, title: str, description: str = "", variant: str = VARIANT_DEFAULT) -> None:
        from savanna.core.events.event_service import publish_transient  # local import to avoid cycle

        publish_transient(
            NOTIFICATION_EVENT,
            {
                "client_id": self.client_id,
                "title": title,
                "description": description,
                "variant": variant,
            },
        )


def notify_safely(notifier: Notifier, title: str, description: str = "", variant: str = VARIANT_DEFAULT) -> None:
    try:
        notifier.notify(title, description, variant)
    except Exception:
        logger.warning("Notification delivery failed", exc_info=True)


__all__ = [
    "Notifier",
    "NullNotifier",
    "EventBusNotifier",
    "notify_safely",
    "VARIANT_DEFAULT",
    "VARIANT_DESTRUCTIVE",
]
