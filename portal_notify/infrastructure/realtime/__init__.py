"""Realtime channel helpers for the infrastructure layer."""

from .channel import ChannelConnectionManager, ChannelHandle
from .listeners import NOTIFICATION_EVENT, EventListenerRegistry
from .subscription import JOIN_ROOM_EVENT, SubscriptionRegistrar
from .supervisor import (
    SUPERVISOR_STATE_FAILED,
    SUPERVISOR_STATE_IDLE,
    SUPERVISOR_STATE_POLLING,
    ReconnectionSupervisor,
)

__all__ = [
    "ChannelConnectionManager",
    "ChannelHandle",
    "EventListenerRegistry",
    "JOIN_ROOM_EVENT",
    "NOTIFICATION_EVENT",
    "ReconnectionSupervisor",
    "SUPERVISOR_STATE_FAILED",
    "SUPERVISOR_STATE_IDLE",
    "SUPERVISOR_STATE_POLLING",
    "SubscriptionRegistrar",
]
