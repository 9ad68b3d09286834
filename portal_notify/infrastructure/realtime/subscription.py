"""Room subscription for the recipient's mailbox."""

from __future__ import annotations

import logging

import socketio

from .channel import ChannelConnectionManager

logger = logging.getLogger(__name__)

JOIN_ROOM_EVENT = "joinRoom"


class SubscriptionRegistrar:
    """Re-assert room membership after every successful connect.

    The broker forgets room membership whenever the transport drops, so the
    join is tracked per connection generation rather than per session.
    """

    def __init__(self, manager: ChannelConnectionManager) -> None:
        self._manager = manager
        self._joined: tuple[int, str] | None = None

    def is_joined(self, recipient_id: str) -> bool:
        handle = self._manager.active()
        if handle is None:
            return False
        return self._joined == (handle.connection_id, recipient_id)

    async def join_room(self, recipient_id: str | None) -> bool:
        """Emit ``joinRoom`` for ``recipient_id`` on the active channel."""

        if not recipient_id:
            logger.warning("Cannot join notification room without a recipient id")
            return False

        handle = self._manager.active()
        if handle is None:
            logger.debug("No active channel; skipping room join for %s", recipient_id)
            return False

        if self._joined == (handle.connection_id, recipient_id):
            return True

        logger.info(
            "Joining notification room for user %s on channel %s", recipient_id, handle.id
        )
        try:
            await handle.emit(JOIN_ROOM_EVENT, {"userId": recipient_id})
        except (socketio.exceptions.SocketIOError, OSError) as exc:
            logger.error("Could not join notification room for %s: %s", recipient_id, exc)
            return False

        self._joined = (handle.connection_id, recipient_id)
        return True

    def reset(self) -> None:
        """Forget the recorded join so the next ``join_room`` emits again."""

        self._joined = None


__all__ = ["JOIN_ROOM_EVENT", "SubscriptionRegistrar"]
