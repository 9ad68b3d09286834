"""Connection management for the realtime notification channel."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections import defaultdict
from typing import Any, Callable, DefaultDict, List

import socketio

from portal_notify.config import Settings, get_settings
from portal_notify.domain.entities import (
    CONNECTION_STATUS_CONNECTED,
    CONNECTION_STATUS_CONNECTING,
    CONNECTION_STATUS_DISCONNECTED,
    ConnectionState,
)
from portal_notify.domain.errors import TransportError

logger = logging.getLogger(__name__)

StatusObserver = Callable[[ConnectionState, ConnectionState], None]


class ChannelHandle:
    """A single Socket.IO client connection and the listeners registered on it."""

    def __init__(self, client: Any) -> None:
        self._client = client
        self._listeners: DefaultDict[str, List[Callable[..., Any]]] = defaultdict(list)
        self._dispatched_events: set[str] = set()
        self.connection_id = 0
        self.closing = False

    @property
    def id(self) -> str | None:
        return getattr(self._client, "sid", None)

    @property
    def connected(self) -> bool:
        """Transport-level health flag."""

        return bool(getattr(self._client, "connected", False)) and not self.closing

    async def open(self, url: str, **kwargs: Any) -> None:
        await self._client.connect(url, **kwargs)

    async def emit(self, event: str, data: Any = None) -> None:
        await self._client.emit(event, data)

    def on(self, event: str, handler: Callable[..., Any]) -> None:
        """Register ``handler`` for ``event``; handlers accumulate like in Socket.IO."""

        self._listeners[event].append(handler)
        if event not in self._dispatched_events:
            self._client.on(event, self._make_dispatcher(event))
            self._dispatched_events.add(event)

    def off(self, event: str) -> None:
        """Remove every handler registered for ``event``."""

        self._listeners.pop(event, None)

    def has_listeners(self, event: str) -> bool:
        return bool(self._listeners.get(event))

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, ()))

    async def close(self) -> None:
        self.closing = True
        self._listeners.clear()
        await self._client.disconnect()

    def _make_dispatcher(self, event: str) -> Callable[..., Any]:
        async def dispatch(*args: Any) -> None:
            for listener in list(self._listeners.get(event, ())):
                try:
                    result = listener(*args)
                    if inspect.isawaitable(result):
                        await result
                except Exception:
                    logger.exception("Listener for channel event '%s' failed", event)

        return dispatch


def _default_client_factory() -> socketio.AsyncClient:
    # Reconnection is driven by the supervisor so rooms are always re-joined.
    return socketio.AsyncClient(reconnection=False, logger=False, engineio_logger=False)


class ChannelConnectionManager:
    """Own the one live realtime channel of the current session."""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        client_factory: Callable[[], Any] | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._client_factory = client_factory or _default_client_factory
        self._handle: ChannelHandle | None = None
        self._state = ConnectionState()
        self._lock = asyncio.Lock()
        self._observers: list[StatusObserver] = []
        self._attempts = 0
        self._generation = 0

    @property
    def state(self) -> ConnectionState:
        return self._state

    def current(self) -> ChannelHandle | None:
        """Return the channel handle, healthy or not."""

        return self._handle

    def active(self) -> ChannelHandle | None:
        """Return the channel handle only when the transport reports it connected."""

        handle = self._handle
        if handle is None or not handle.connected:
            return None
        return handle

    def add_status_observer(self, observer: StatusObserver) -> Callable[[], None]:
        """Call ``observer(state, previous)`` on every status transition."""

        self._observers.append(observer)

        def remove() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return remove

    async def connect(self, credential: str | None) -> ChannelHandle | None:
        """Open the channel with ``credential`` or reuse the healthy one."""

        if not credential:
            logger.info("Realtime channel not started: no credential available")
            return None

        async with self._lock:
            self._attempts += 1
            attempt = self._attempts

            handle = self._handle
            if handle is not None and handle.connected:
                logger.debug(
                    "Channel %s already connected (attempt #%s)", handle.id, attempt
                )
                return handle

            if handle is not None:
                logger.info(
                    "Cleaning up stale channel before reconnecting (attempt #%s)", attempt
                )
                self._handle = None
                await self._teardown(handle)

            return await self._open(credential, attempt)

    async def disconnect(self) -> None:
        """Close the channel on logout; this is never reported as a drop."""

        async with self._lock:
            handle = self._handle
            if handle is None:
                return
            logger.info("Disconnecting realtime channel %s", handle.id)
            self._handle = None
            await self._teardown(handle)
            self._set_state(ConnectionState(connection_id=self._generation))

    async def _open(self, credential: str, attempt: int) -> ChannelHandle | None:
        settings = self._settings
        handle = ChannelHandle(self._client_factory())
        handle.on("connect", lambda: self._on_connect(handle, attempt))
        handle.on("disconnect", lambda *args: self._on_disconnect(handle, *args))
        handle.on("connect_error", lambda *args: self._on_connect_error(handle, *args))
        self._handle = handle
        self._set_state(
            ConnectionState(
                status=CONNECTION_STATUS_CONNECTING,
                last_error=self._state.last_error,
                connection_id=self._generation,
            )
        )

        logger.info(
            "Connecting realtime channel to %s (attempt #%s)", settings.server_url, attempt
        )
        try:
            await handle.open(
                settings.server_url,
                auth={"token": credential},
                socketio_path=settings.socketio_path,
                wait_timeout=settings.connect_timeout,
            )
        except (socketio.exceptions.ConnectionError, asyncio.TimeoutError, OSError) as exc:
            error = TransportError(f"Handshake failed: {exc}")
            logger.error(
                "Realtime channel connection failed (attempt #%s): %s", attempt, exc
            )
            if self._handle is handle:
                self._handle = None
            await self._teardown(handle)
            self._set_state(
                ConnectionState(
                    status=CONNECTION_STATUS_DISCONNECTED,
                    last_error=error,
                    connection_id=self._generation,
                )
            )
            return None

        self._generation += 1
        handle.connection_id = self._generation
        self._set_state(
            ConnectionState(
                status=CONNECTION_STATUS_CONNECTED,
                channel_id=handle.id,
                connection_id=self._generation,
            )
        )
        return handle

    async def _teardown(self, handle: ChannelHandle) -> None:
        try:
            await handle.close()
        except Exception as exc:
            logger.warning("Error while closing realtime channel %s: %s", handle.id, exc)

    def _on_connect(self, handle: ChannelHandle, attempt: int) -> None:
        logger.info(
            "Realtime channel connected (attempt #%s), id %s", attempt, handle.id
        )

    def _on_disconnect(self, handle: ChannelHandle, *args: Any) -> None:
        if handle is not self._handle or handle.closing:
            return
        reason = args[0] if args else "unknown"
        logger.warning("Realtime channel %s disconnected: %s", handle.id, reason)
        self._set_state(
            ConnectionState(
                status=CONNECTION_STATUS_DISCONNECTED,
                last_error=TransportError(f"Channel disconnected: {reason}"),
                connection_id=self._generation,
            )
        )

    def _on_connect_error(self, handle: ChannelHandle, *args: Any) -> None:
        if handle is not self._handle:
            return
        detail = args[0] if args else "unknown error"
        logger.error("Realtime channel error: %s", detail)
        self._state = ConnectionState(
            status=self._state.status,
            channel_id=self._state.channel_id,
            last_error=TransportError(str(detail)),
            connection_id=self._state.connection_id,
        )

    def _set_state(self, state: ConnectionState) -> None:
        previous = self._state
        self._state = state
        if previous.status == state.status:
            return
        logger.info("Realtime channel status: %s -> %s", previous.status, state.status)
        for observer in list(self._observers):
            try:
                observer(state, previous)
            except Exception:
                logger.exception("Connection status observer failed")


__all__ = [
    "ChannelConnectionManager",
    "ChannelHandle",
]
