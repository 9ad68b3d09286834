"""Reconnection supervision for the realtime notification channel."""

from __future__ import annotations

import asyncio
import contextlib
import inspect
import logging
from typing import Any, Callable

import anyio

from portal_notify.config import Settings, get_settings
from portal_notify.domain.entities import CONNECTION_STATUS_DISCONNECTED, ConnectionState

from .channel import ChannelConnectionManager
from .listeners import EventListenerRegistry, NotificationCallback
from .subscription import SubscriptionRegistrar

logger = logging.getLogger(__name__)

SUPERVISOR_STATE_IDLE = "idle"
SUPERVISOR_STATE_POLLING = "polling"
SUPERVISOR_STATE_FAILED = "failed"


class ReconnectionSupervisor:
    """Run connect, room join and listener attachment until they all succeed.

    Failed attempts are retried with bounded exponential backoff. Once
    ``retry_max_attempts`` retries have failed the supervisor stops in the
    ``failed`` state and reports the last transport error through
    ``on_give_up`` so the user can be told that live updates are off.
    """

    def __init__(
        self,
        manager: ChannelConnectionManager,
        registrar: SubscriptionRegistrar,
        registry: EventListenerRegistry,
        *,
        credential_provider: Callable[[], str | None],
        recipient_id: str,
        on_notification: NotificationCallback,
        settings: Settings | None = None,
        on_give_up: Callable[[Exception | None], Any] | None = None,
        on_recovered: Callable[[], Any] | None = None,
    ) -> None:
        self._manager = manager
        self._registrar = registrar
        self._registry = registry
        self._credential_provider = credential_provider
        self._recipient_id = recipient_id
        self._on_notification = on_notification
        self._settings = settings or get_settings()
        self._on_give_up = on_give_up
        self._on_recovered = on_recovered
        self._state = SUPERVISOR_STATE_IDLE
        self._task: asyncio.Task[None] | None = None
        self._recovery_task: asyncio.Task[None] | None = None
        self._remove_observer: Callable[[], None] | None = None
        self._started = False
        self._attempting = False
        self.failures = 0

    @property
    def state(self) -> str:
        return self._state

    @property
    def is_polling(self) -> bool:
        return self._task is not None and not self._task.done()

    def next_delay(self) -> float:
        """Delay before the next retry given the failures recorded so far."""

        settings = self._settings
        delay = settings.retry_initial_delay * settings.retry_multiplier**self.failures
        return min(delay, settings.retry_max_delay)

    async def start(self) -> bool:
        """Attempt the setup now and fall back to polling when it fails."""

        self._started = True
        self.failures = 0
        if self._remove_observer is None:
            self._remove_observer = self._manager.add_status_observer(self._on_status)

        if not self._credential_provider():
            logger.info("No session credential; realtime notifications stay disabled")
            self._state = SUPERVISOR_STATE_IDLE
            return False

        if await self._run_attempt():
            self._state = SUPERVISOR_STATE_IDLE
            return True

        logger.info("Initial realtime setup unsuccessful, will retry")
        self._begin_polling()
        return False

    async def retry(self) -> bool:
        """Restart supervision after it gave up."""

        await self._cancel_tasks()
        return await self.start()

    async def stop(self) -> None:
        """Cancel the retry timer and stop reacting to channel drops."""

        self._started = False
        if self._remove_observer is not None:
            self._remove_observer()
            self._remove_observer = None
        await self._cancel_tasks()
        self._registrar.reset()
        self._state = SUPERVISOR_STATE_IDLE

    async def _run_attempt(self) -> bool:
        credential = self._credential_provider()
        if not credential:
            return False

        self._attempting = True
        try:
            with anyio.fail_after(self._settings.connect_timeout):
                handle = await self._manager.connect(credential)
                if handle is None:
                    return False
                if not await self._registrar.join_room(self._recipient_id):
                    return False
            return self._registry.attach(self._on_notification)
        except TimeoutError:
            logger.error(
                "Realtime setup timed out after %.1fs", self._settings.connect_timeout
            )
            return False
        except Exception:
            logger.exception("Unexpected error during realtime setup")
            return False
        finally:
            self._attempting = False

    def _begin_polling(self) -> None:
        if self.is_polling:
            return
        self._state = SUPERVISOR_STATE_POLLING
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._poll())

    async def _poll(self) -> None:
        max_attempts = self._settings.retry_max_attempts
        try:
            while True:
                delay = self.next_delay()
                logger.info(
                    "Retrying realtime setup in %.1fs (retry %s/%s)",
                    delay,
                    self.failures + 1,
                    max_attempts,
                )
                await asyncio.sleep(delay)

                if await self._run_attempt():
                    logger.info("Realtime setup succeeded on retry")
                    self._state = SUPERVISOR_STATE_IDLE
                    self.failures = 0
                    # Runs outside the poll task so a drop during backfill restarts polling.
                    self._spawn_recovery()
                    return

                self.failures += 1
                if self.failures >= max_attempts:
                    error = self._manager.state.last_error
                    logger.error(
                        "Giving up on realtime notifications after %s retries: %s",
                        self.failures,
                        error,
                    )
                    self._state = SUPERVISOR_STATE_FAILED
                    await self._notify(self._on_give_up, error)
                    return
        except asyncio.CancelledError:
            logger.debug("Realtime retry timer cancelled")
            raise

    async def _notify(self, callback: Callable[..., Any] | None, *args: Any) -> None:
        if callback is None:
            return
        try:
            result = callback(*args)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception("Supervisor callback failed")

    def _spawn_recovery(self) -> None:
        if self._on_recovered is None:
            return
        if self._recovery_task is not None and not self._recovery_task.done():
            self._recovery_task.cancel()
        loop = asyncio.get_running_loop()
        self._recovery_task = loop.create_task(self._notify(self._on_recovered))

    async def _cancel_tasks(self) -> None:
        tasks = (self._task, self._recovery_task)
        self._task = self._recovery_task = None
        for task in tasks:
            if task is None or task.done():
                continue
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

    def _on_status(self, state: ConnectionState, previous: ConnectionState) -> None:
        if not self._started or self._attempting:
            return
        if state.status != CONNECTION_STATUS_DISCONNECTED:
            return
        logger.warning("Realtime channel dropped; starting reconnection polling")
        self._registry.detach()
        self._registrar.reset()
        self.failures = 0
        self._begin_polling()


__all__ = [
    "ReconnectionSupervisor",
    "SUPERVISOR_STATE_FAILED",
    "SUPERVISOR_STATE_IDLE",
    "SUPERVISOR_STATE_POLLING",
]
