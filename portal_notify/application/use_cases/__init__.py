"""Aggregate application use cases."""

from .notifications import NotificationSession, NotificationSynchronizer

__all__ = ["NotificationSession", "NotificationSynchronizer"]
