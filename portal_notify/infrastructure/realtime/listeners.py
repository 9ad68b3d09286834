"""Single-listener registration for inbound notification events."""

from __future__ import annotations

import logging
from typing import Any, Callable

from pydantic import ValidationError

from portal_notify.domain.entities import Notification
from portal_notify.interfaces.api.schemas import NotificationRead

from .channel import ChannelConnectionManager, ChannelHandle

logger = logging.getLogger(__name__)

NOTIFICATION_EVENT = "notification"

NotificationCallback = Callable[[Notification], Any]


class EventListenerRegistry:
    """Keep exactly one notification handler on the active channel."""

    def __init__(
        self, manager: ChannelConnectionManager, event_name: str = NOTIFICATION_EVENT
    ) -> None:
        self._manager = manager
        self.event_name = event_name
        self._handle: ChannelHandle | None = None

    @property
    def attached(self) -> bool:
        handle = self._handle
        return (
            handle is not None
            and handle is self._manager.active()
            and handle.has_listeners(self.event_name)
        )

    def attach(self, on_notification: NotificationCallback) -> bool:
        """Attach ``on_notification`` to the active channel.

        Returns ``True`` when the channel carries the listener afterwards, either
        because it was attached now or because it already was.
        """

        handle = self._manager.active()
        if handle is None:
            logger.warning("Cannot attach '%s' listener: no active channel", self.event_name)
            return False

        if handle is self._handle and handle.has_listeners(self.event_name):
            return True

        handle.off(self.event_name)
        handle.on(self.event_name, self._build_listener(on_notification))
        self._handle = handle
        logger.info("Attached '%s' listener on channel %s", self.event_name, handle.id)
        return True

    def detach(self) -> None:
        handle = self._handle
        if handle is None:
            return
        handle.off(self.event_name)
        self._handle = None
        logger.info("Detached '%s' listener from channel %s", self.event_name, handle.id)

    def _build_listener(self, on_notification: NotificationCallback) -> Callable[[Any], Any]:
        def listener(payload: Any) -> Any:
            try:
                if isinstance(payload, (str, bytes)):
                    record = NotificationRead.model_validate_json(payload)
                else:
                    record = NotificationRead.model_validate(payload)
            except ValidationError as exc:
                logger.warning("Dropping malformed notification payload: %s", exc)
                return None

            notification = record.to_entity()
            logger.info(
                "Notification %s received (%s)", notification.id, notification.type
            )
            return on_notification(notification)

        return listener


__all__ = ["EventListenerRegistry", "NOTIFICATION_EVENT", "NotificationCallback"]
