"""Domain objects describing the state of the realtime channel."""

from __future__ import annotations

from dataclasses import dataclass

CONNECTION_STATUS_NOT_INITIALIZED = "not_initialized"
CONNECTION_STATUS_CONNECTING = "connecting"
CONNECTION_STATUS_CONNECTED = "connected"
CONNECTION_STATUS_DISCONNECTED = "disconnected"


@dataclass(frozen=True)
class ConnectionState:
    """Snapshot of the channel lifecycle kept for the lifetime of a session."""

    status: str = CONNECTION_STATUS_NOT_INITIALIZED
    channel_id: str | None = None
    last_error: Exception | None = None
    connection_id: int = 0

    @property
    def is_connected(self) -> bool:
        return self.status == CONNECTION_STATUS_CONNECTED


__all__ = [
    "CONNECTION_STATUS_CONNECTED",
    "CONNECTION_STATUS_CONNECTING",
    "CONNECTION_STATUS_DISCONNECTED",
    "CONNECTION_STATUS_NOT_INITIALIZED",
    "ConnectionState",
]
