"""Use cases keeping the notification mailbox in sync."""

from .session import NotificationSession
from .synchronizer import NotificationSynchronizer

__all__ = ["NotificationSession", "NotificationSynchronizer"]
