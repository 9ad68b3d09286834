from .notification import NotificationPageRead, NotificationRead, NotificationSenderRead

__all__ = ["NotificationPageRead", "NotificationRead", "NotificationSenderRead"]
