"""Error taxonomy of the notification client."""

from __future__ import annotations


class NotificationError(RuntimeError):
    """Base class for recoverable notification client failures."""


class TransportError(NotificationError):
    """Raised for handshake or transport level failures of the realtime channel."""


class FetchFailure(NotificationError):
    """The paginated notification list could not be retrieved."""


class MutationConfirmationFailure(NotificationError):
    """The server rejected a read/read-all/delete after the local update."""

    def __init__(
        self,
        operation: str,
        notification_id: str | None = None,
        *,
        cause: Exception | None = None,
    ) -> None:
        self.operation = operation
        self.notification_id = notification_id
        self.cause = cause
        target = f" for notification {notification_id}" if notification_id else ""
        super().__init__(f"Could not confirm '{operation}'{target}")


__all__ = [
    "FetchFailure",
    "MutationConfirmationFailure",
    "NotificationError",
    "TransportError",
]
