"""Presentation helpers consuming the notification synchronizer."""

from .alerts import ALERT_LEVEL_ERROR, ALERT_LEVEL_INFO, Alert, AlertQueue
from .bell import BADGE_LIMIT, NotificationBell, icon_for, link_for

__all__ = [
    "ALERT_LEVEL_ERROR",
    "ALERT_LEVEL_INFO",
    "Alert",
    "AlertQueue",
    "BADGE_LIMIT",
    "NotificationBell",
    "icon_for",
    "link_for",
]
