"""Domain entity representing a notification delivered to a recipient."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

NOTIFICATION_TYPE_ANNOUNCEMENT = "announcement"
NOTIFICATION_TYPE_JOB = "job"
NOTIFICATION_TYPE_COMMENT = "comment"
NOTIFICATION_TYPE_APPLICATION_SUBMITTED = "application_submitted"
NOTIFICATION_TYPE_APPLICATION_ADVISOR_ACTION = "application_advisor_action"
NOTIFICATION_TYPE_APPLICATION_COORDINATOR_ACTION = "application_coordinator_action"
NOTIFICATION_TYPE_OTHER = "other"

NOTIFICATION_TYPES: frozenset[str] = frozenset(
    {
        NOTIFICATION_TYPE_ANNOUNCEMENT,
        NOTIFICATION_TYPE_JOB,
        NOTIFICATION_TYPE_COMMENT,
        NOTIFICATION_TYPE_APPLICATION_SUBMITTED,
        NOTIFICATION_TYPE_APPLICATION_ADVISOR_ACTION,
        NOTIFICATION_TYPE_APPLICATION_COORDINATOR_ACTION,
        NOTIFICATION_TYPE_OTHER,
    }
)

APPLICATION_NOTIFICATION_TYPES: frozenset[str] = frozenset(
    {
        NOTIFICATION_TYPE_APPLICATION_SUBMITTED,
        NOTIFICATION_TYPE_APPLICATION_ADVISOR_ACTION,
        NOTIFICATION_TYPE_APPLICATION_COORDINATOR_ACTION,
    }
)


def normalize_notification_type(value: Any) -> str:
    """Return ``value`` when it is a known type, ``other`` for anything else."""

    if isinstance(value, str):
        candidate = value.strip().lower()
        if candidate in NOTIFICATION_TYPES:
            return candidate
    return NOTIFICATION_TYPE_OTHER


@dataclass(frozen=True)
class NotificationSender:
    """Denormalized summary of the actor that triggered a notification."""

    id: str | None = None
    name: str | None = None
    avatar_url: str | None = None


@dataclass
class Notification:
    """Information message delivered to the mailbox of a single recipient."""

    id: str
    type: str
    title: str
    message: str
    created_at: datetime
    related_id: str | None = None
    sender: NotificationSender | None = None
    read: bool = False


@dataclass
class NotificationPage:
    """One page of notifications as returned by the list endpoint."""

    notifications: list[Notification]
    unread: int
    total: int
    page: int = 1
    pages: int | None = None


__all__ = [
    "APPLICATION_NOTIFICATION_TYPES",
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
