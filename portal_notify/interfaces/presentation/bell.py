"""View model behind the notification bell in the portal header."""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable

from portal_notify.application.use_cases.notifications import NotificationSynchronizer
from portal_notify.domain.entities import (
    APPLICATION_NOTIFICATION_TYPES,
    NOTIFICATION_TYPE_ANNOUNCEMENT,
    NOTIFICATION_TYPE_APPLICATION_ADVISOR_ACTION,
    NOTIFICATION_TYPE_APPLICATION_COORDINATOR_ACTION,
    NOTIFICATION_TYPE_APPLICATION_SUBMITTED,
    NOTIFICATION_TYPE_COMMENT,
    NOTIFICATION_TYPE_JOB,
    Notification,
)
from portal_notify.domain.errors import MutationConfirmationFailure

from .alerts import ALERT_LEVEL_ERROR, AlertQueue

logger = logging.getLogger(__name__)

BADGE_LIMIT = 9
DEFAULT_ICON = "🔔"

_ICONS: dict[str, str] = {
    NOTIFICATION_TYPE_ANNOUNCEMENT: "📢",
    NOTIFICATION_TYPE_JOB: "💼",
    NOTIFICATION_TYPE_APPLICATION_SUBMITTED: "📝",
    NOTIFICATION_TYPE_APPLICATION_ADVISOR_ACTION: "👨‍🏫",
    NOTIFICATION_TYPE_APPLICATION_COORDINATOR_ACTION: "🏢",
}

_MUTATION_MESSAGES: dict[str, str] = {
    "mark_read": "Could not mark the notification as read.",
    "mark_all_read": "Could not mark all notifications as read.",
    "delete": "Could not delete the notification.",
}


def link_for(notification: Notification) -> str:
    """Return the portal route a notification points to."""

    kind = notification.type
    if kind in (NOTIFICATION_TYPE_ANNOUNCEMENT, NOTIFICATION_TYPE_COMMENT):
        return f"/announcement/{notification.related_id}" if notification.related_id else "#"
    if kind == NOTIFICATION_TYPE_JOB:
        return "/job-listings"
    if kind in APPLICATION_NOTIFICATION_TYPES:
        return f"/applications/{notification.related_id}" if notification.related_id else "#"
    return "#"


def icon_for(notification: Notification) -> str:
    return _ICONS.get(notification.type, DEFAULT_ICON)


class NotificationBell:
    """Render cache state and turn user actions into synchronizer calls."""

    def __init__(self, alerts: AlertQueue) -> None:
        self.alerts = alerts
        self.is_open = False
        self.connection_failed = False
        self._synchronizer: NotificationSynchronizer | None = None
        self._retry_connection: Callable[[], Awaitable[Any]] | None = None

    def bind(
        self,
        synchronizer: NotificationSynchronizer,
        *,
        retry_connection: Callable[[], Awaitable[Any]] | None = None,
    ) -> None:
        self._synchronizer = synchronizer
        self._retry_connection = retry_connection

    @property
    def synchronizer(self) -> NotificationSynchronizer:
        if self._synchronizer is None:
            raise RuntimeError("NotificationBell is not bound to a synchronizer")
        return self._synchronizer

    @property
    def items(self) -> list[Notification]:
        return self.synchronizer.notifications

    @property
    def unread_count(self) -> int:
        return self.synchronizer.unread_count

    @property
    def badge_text(self) -> str:
        count = self.unread_count
        if count <= 0:
            return ""
        return f"{BADGE_LIMIT}+" if count > BADGE_LIMIT else str(count)

    @property
    def error(self) -> str | None:
        failure = self.synchronizer.error
        return str(failure) if failure else None

    def toggle(self) -> None:
        self.is_open = not self.is_open

    def open(self) -> None:
        self.is_open = True

    def close(self) -> None:
        self.is_open = False

    async def click(self, notification: Notification) -> str:
        """Mark an unread item as read, close the panel and return its link."""

        if not notification.read:
            await self.synchronizer.mark_read(notification.id)
        self.is_open = False
        return link_for(notification)

    async def clear_all(self) -> bool:
        return await self.synchronizer.mark_all_read()

    async def delete(self, notification_id: str) -> bool:
        return await self.synchronizer.delete_notification(notification_id)

    async def retry(self) -> bool:
        """Retry affordance for a failed fetch or a dropped live connection."""

        loaded = await self.synchronizer.load_page(1) is not None
        if self.connection_failed and self._retry_connection is not None:
            self.connection_failed = False
            await self._retry_connection()
        return loaded

    def show_alert(self, notification: Notification) -> None:
        self.alerts.push(notification.message or notification.title, icon=DEFAULT_ICON)

    def show_error(self, failure: MutationConfirmationFailure) -> None:
        message = _MUTATION_MESSAGES.get(failure.operation, str(failure))
        self.alerts.push(message, icon="⚠️", level=ALERT_LEVEL_ERROR)

    def report_connection_lost(self, error: Exception | None) -> None:
        logger.warning("Live notifications unavailable: %s", error)
        self.connection_failed = True
        self.alerts.push(
            "Live notifications are unavailable. Retry to reconnect.",
            icon="⚠️",
            level=ALERT_LEVEL_ERROR,
        )


__all__ = ["BADGE_LIMIT", "NotificationBell", "icon_for", "link_for"]
