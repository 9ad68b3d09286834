"""Repositories backed by the portal REST API."""

from .notification_repository import NotificationApiError, NotificationRepository

__all__ = ["NotificationApiError", "NotificationRepository"]
