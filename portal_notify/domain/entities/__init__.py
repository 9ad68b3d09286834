"""Domain entities exposed by the notification client."""

from .connection import (
    CONNECTION_STATUS_CONNECTED,
    CONNECTION_STATUS_CONNECTING,
    CONNECTION_STATUS_DISCONNECTED,
    CONNECTION_STATUS_NOT_INITIALIZED,
    ConnectionState,
)
from .notification import (
    APPLICATION_NOTIFICATION_TYPES,
    NOTIFICATION_TYPES,
    NOTIFICATION_TYPE_ANNOUNCEMENT,
    NOTIFICATION_TYPE_APPLICATION_ADVISOR_ACTION,
    NOTIFICATION_TYPE_APPLICATION_COORDINATOR_ACTION,
    NOTIFICATION_TYPE_APPLICATION_SUBMITTED,
    NOTIFICATION_TYPE_COMMENT,
    NOTIFICATION_TYPE_JOB,
    NOTIFICATION_TYPE_OTHER,
    Notification,
    NotificationPage,
    NotificationSender,
    normalize_notification_type,
)

__all__ = [
    "APPLICATION_NOTIFICATION_TYPES",
    "CONNECTION_STATUS_CONNECTED",
    "CONNECTION_STATUS_CONNECTING",
    "CONNECTION_STATUS_DISCONNECTED",
    "CONNECTION_STATUS_NOT_INITIALIZED",
    "ConnectionState",
    "NOTIFICATION_TYPES",
    "NOTIFICATION_TYPE_ANNOUNCEMENT",
    "NOTIFICATION_TYPE_APPLICATION_ADVISOR_ACTION",
    "NOTIFICATION_TYPE_APPLICATION_COORDINATOR_ACTION",
    "NOTIFICATION_TYPE_APPLICATION_SUBMITTED",
    "NOTIFICATION_TYPE_COMMENT",
    "NOTIFICATION_TYPE_JOB",
    "NOTIFICATION_TYPE_OTHER",
    "Notification",
    "NotificationPage",
    "NotificationSender",
    "normalize_notification_type",
]
