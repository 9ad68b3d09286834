"""Pydantic models describing notification payloads exchanged with the broker."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from portal_notify.domain.entities import (
    Notification,
    NotificationPage,
    NOTIFICATION_TYPE_OTHER,
    NotificationSender,
    normalize_notification_type,
)
from portal_notify.utils import now_in_app_timezone, parse_timestamp


class NotificationSenderRead(BaseModel):
    """Actor summary embedded in a notification record."""

    model_config = ConfigDict(extra="ignore")

    id: str | None = Field(default=None, validation_alias=AliasChoices("_id", "id"))
    name: str | None = None
    avatar_url: str | None = Field(
        default=None, validation_alias=AliasChoices("profileImage", "avatar_url", "avatar")
    )

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_identifier(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    def to_entity(self) -> NotificationSender:
        return NotificationSender(id=self.id, name=self.name, avatar_url=self.avatar_url)


class NotificationRead(BaseModel):
    """Representation of a notification as delivered by the list endpoint or the channel."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(validation_alias=AliasChoices("_id", "id"), min_length=1)
    type: str = NOTIFICATION_TYPE_OTHER
    title: str = ""
    message: str = ""
    related_id: str | None = Field(
        default=None, validation_alias=AliasChoices("relatedId", "related_id")
    )
    sender: NotificationSenderRead | None = None
    read: bool = False
    created_at: datetime | None = Field(
        default=None, validation_alias=AliasChoices("created", "createdAt", "created_at")
    )

    @field_validator("id", "related_id", mode="before")
    @classmethod
    def _coerce_identifier(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("type", mode="before")
    @classmethod
    def _normalize_type(cls, value: Any) -> str:
        return normalize_notification_type(value)

    @field_validator("sender", mode="before")
    @classmethod
    def _expand_sender(cls, value: Any) -> Any:
        # Unpopulated references arrive as a bare identifier.
        if isinstance(value, (str, int)) and not isinstance(value, bool):
            return {"_id": str(value)}
        return value

    @field_validator("created_at", mode="before")
    @classmethod
    def _parse_created_at(cls, value: Any) -> datetime | None:
        return parse_timestamp(value)

    @field_validator("read", mode="before")
    @classmethod
    def _default_read(cls, value: Any) -> Any:
        return False if value is None else value

    def to_entity(self) -> Notification:
        return Notification(
            id=self.id,
            type=self.type,
            title=self.title,
            message=self.message,
            related_id=self.related_id,
            sender=self.sender.to_entity() if self.sender else None,
            read=self.read,
            created_at=self.created_at or now_in_app_timezone(),
        )


class NotificationPageRead(BaseModel):
    """Response body of the paginated notification list endpoint."""

    model_config = ConfigDict(extra="ignore")

    notifications: list[NotificationRead] = Field(default_factory=list)
    unread: int = Field(default=0, ge=0)
    total: int = Field(default=0, ge=0)
    page: int = Field(default=1, ge=1)
    pages: int | None = None

    def to_entity(self) -> NotificationPage:
        return NotificationPage(
            notifications=[item.to_entity() for item in self.notifications],
            unread=self.unread,
            total=self.total,
            page=self.page,
            pages=self.pages,
        )


__all__ = ["NotificationPageRead", "NotificationRead", "NotificationSenderRead"]
