"""Per-login owner of the realtime channel and the notification cache."""

from __future__ import annotations

import logging
from typing import Any, Callable

import httpx

from portal_notify.config import Settings, get_settings
from portal_notify.domain.entities import Notification
from portal_notify.domain.errors import MutationConfirmationFailure
from portal_notify.infrastructure.credentials import (
    SessionCredentialStore,
    recipient_id_from_token,
)
from portal_notify.infrastructure.realtime import (
    ChannelConnectionManager,
    EventListenerRegistry,
    ReconnectionSupervisor,
    SubscriptionRegistrar,
)
from portal_notify.infrastructure.repositories import NotificationRepository

from .synchronizer import NotificationSynchronizer

logger = logging.getLogger(__name__)


class NotificationSession:
    """Wire connection, subscription, listener, supervisor and cache together.

    Constructed when the user signs in and closed when they sign out, so no
    channel outlives the identity it was authenticated for.
    """

    def __init__(
        self,
        *,
        settings: Settings | None = None,
        credentials: SessionCredentialStore | None = None,
        recipient_id: str | None = None,
        http_client: httpx.AsyncClient | None = None,
        repository: NotificationRepository | None = None,
        client_factory: Callable[[], Any] | None = None,
        on_alert: Callable[[Notification], None] | None = None,
        on_error: Callable[[MutationConfirmationFailure], None] | None = None,
        on_give_up: Callable[[Exception | None], Any] | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._owns_http_client = http_client is None and repository is None
        if self._owns_http_client:
            http_client = httpx.AsyncClient(
                base_url=self.settings.server_url,
                timeout=self.settings.request_timeout,
            )
        self._http_client = http_client

        if credentials is None:
            cookies = http_client.cookies if http_client is not None else {}
            credentials = SessionCredentialStore(cookies, self.settings.auth_cookie_name)
        self.credentials = credentials
        self.recipient_id = recipient_id or recipient_id_from_token(credentials.get_token())

        self.repository = repository or NotificationRepository(
            http_client, self.settings.notifications_path
        )
        self.synchronizer = NotificationSynchronizer(
            self.repository,
            page_size=self.settings.page_size,
            on_alert=on_alert,
            on_error=on_error,
        )
        self.manager = ChannelConnectionManager(self.settings, client_factory=client_factory)
        self.registrar = SubscriptionRegistrar(self.manager)
        self.listeners = EventListenerRegistry(self.manager)
        self.supervisor = ReconnectionSupervisor(
            self.manager,
            self.registrar,
            self.listeners,
            credential_provider=self.credentials.get_token,
            recipient_id=self.recipient_id or "",
            on_notification=self.synchronizer.apply_realtime_insert,
            settings=self.settings,
            on_give_up=on_give_up,
            on_recovered=self._backfill,
        )
        self._closed = False

    @classmethod
    def from_token(cls, token: str, **kwargs: Any) -> "NotificationSession":
        """Build a session for an already issued bearer ``token``."""

        settings = kwargs.pop("settings", None) or get_settings()
        http_client = httpx.AsyncClient(
            base_url=settings.server_url,
            timeout=settings.request_timeout,
            cookies={settings.auth_cookie_name: token},
        )
        session = cls(settings=settings, http_client=http_client, **kwargs)
        session._owns_http_client = True
        return session

    async def start(self) -> bool:
        """Load the first page and bring the live channel up.

        Returns whether realtime delivery is active; the cache is usable
        either way.
        """

        if self.credentials.get_token() is None:
            logger.info("No session credential; notifications are not loaded")
            return False
        if not self.recipient_id:
            logger.warning("Session credential carries no user id; live updates disabled")
            await self.synchronizer.load_page(1)
            return False

        await self.synchronizer.load_page(1)
        return await self.supervisor.start()

    async def close(self) -> None:
        """Release the channel, the retry timer and the HTTP client."""

        if self._closed:
            return
        self._closed = True
        try:
            await self.supervisor.stop()
            self.listeners.detach()
            await self.manager.disconnect()
        finally:
            self.synchronizer.close()
            if self._owns_http_client and self._http_client is not None:
                await self._http_client.aclose()

    def status(self) -> dict[str, Any]:
        """Diagnostic snapshot of the channel and cache."""

        state = self.manager.state
        return {
            "status": state.status,
            "connected": state.is_connected,
            "channel_id": state.channel_id,
            "connection_id": state.connection_id,
            "last_error": str(state.last_error) if state.last_error else None,
            "supervisor": self.supervisor.state,
            "listener_attached": self.listeners.attached,
            "recipient_id": self.recipient_id,
            "unread_count": self.synchronizer.unread_count,
        }

    async def _backfill(self) -> None:
        # Delivery is at-most-once per transport session; fetch what was missed.
        await self.synchronizer.load_page(1)

    async def __aenter__(self) -> "NotificationSession":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()


__all__ = ["NotificationSession"]
