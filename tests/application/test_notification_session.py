"""End-to-end tests for the per-login notification session."""

from __future__ import annotations

import pathlib
import sys

ROOT = pathlib.Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

import pytest
from jose import jwt

from notification_fakes import FakeRepository, make_notification, make_page, wait_until
from portal_notify.application.use_cases.notifications import NotificationSession
from portal_notify.domain.entities import (
    CONNECTION_STATUS_CONNECTED,
    CONNECTION_STATUS_NOT_INITIALIZED,
)
from portal_notify.infrastructure.credentials import SessionCredentialStore
from portal_notify.infrastructure.realtime import (
    JOIN_ROOM_EVENT,
    NOTIFICATION_EVENT,
    SUPERVISOR_STATE_IDLE,
)

pytestmark = pytest.mark.anyio

TOKEN = jwt.encode({"id": "u1", "role": "student"}, "portal-secret", algorithm="HS256")


def _session(settings, socket_factory, repository, *, token=TOKEN, **kwargs):
    cookies = {"token": token} if token else {}
    return NotificationSession(
        settings=settings,
        credentials=SessionCredentialStore(cookies),
        repository=repository,
        client_factory=socket_factory,
        **kwargs,
    )


def _page():
    return make_page(
        [
            make_notification("n1"),
            make_notification("n2"),
            make_notification("n3"),
            make_notification("n4", read=True),
        ]
    )


async def test_session_loads_and_subscribes(settings, socket_factory) -> None:
    """Signing in loads the first page and joins the user's room."""

    repository = FakeRepository(_page())
    session = _session(settings, socket_factory, repository)

    assert await session.start() is True

    client = socket_factory.last
    assert client.connect_calls[0][1]["auth"] == {"token": TOKEN}
    assert client.emitted == [(JOIN_ROOM_EVENT, {"userId": "u1"})]
    assert session.recipient_id == "u1"
    assert session.synchronizer.unread_count == 3
    await session.close()


async def test_pushed_notification_reaches_the_cache(settings, socket_factory) -> None:
    alerts = []
    repository = FakeRepository(_page())

    async with _session(settings, socket_factory, repository, on_alert=alerts.append) as session:
        await socket_factory.last.trigger(
            NOTIFICATION_EVENT,
            {"_id": "n9", "type": "announcement", "relatedId": "a1", "message": "New post"},
        )

        assert session.synchronizer.notifications[0].id == "n9"
        assert session.synchronizer.unread_count == 4
        assert [alert.message for alert in alerts] == ["New post"]


async def test_reconnect_backfills_missed_notifications(settings, socket_factory) -> None:
    repository = FakeRepository(_page())
    session = _session(settings, socket_factory, repository)
    await session.start()

    repository.pages[1] = make_page([make_notification("n5"), *_page().notifications])
    await socket_factory.last.drop("transport close")
    await wait_until(
        lambda: session.manager.state.status == CONNECTION_STATUS_CONNECTED
        and repository.count("list_page") == 2
    )

    assert session.supervisor.state == SUPERVISOR_STATE_IDLE
    assert session.synchronizer.notifications[0].id == "n5"
    assert session.synchronizer.unread_count == 4
    assert socket_factory.last.emitted == [(JOIN_ROOM_EVENT, {"userId": "u1"})]
    await session.close()


async def test_close_releases_channel_and_cache(settings, socket_factory) -> None:
    repository = FakeRepository(_page())
    session = _session(settings, socket_factory, repository)
    await session.start()

    await session.close()
    await session.close()

    assert session.manager.state.status == CONNECTION_STATUS_NOT_INITIALIZED
    assert session.manager.current() is None
    assert not session.synchronizer.active
    assert socket_factory.last.disconnect_calls == 1
    assert session.status()["listener_attached"] is False
    assert session.status()["connected"] is False


async def test_anonymous_session_does_nothing(settings, socket_factory) -> None:
    repository = FakeRepository(_page())
    session = _session(settings, socket_factory, repository, token=None)

    assert await session.start() is False

    assert socket_factory.clients == []
    assert repository.calls == []
    assert session.status()["status"] == CONNECTION_STATUS_NOT_INITIALIZED
    await session.close()


async def test_token_without_user_id_only_loads_the_list(settings, socket_factory, caplog) -> None:
    token = jwt.encode({"role": "student"}, "portal-secret", algorithm="HS256")
    repository = FakeRepository(_page())
    session = _session(settings, socket_factory, repository, token=token)

    with caplog.at_level("WARNING"):
        assert await session.start() is False

    assert socket_factory.clients == []
    assert session.synchronizer.unread_count == 3
    assert "no user id" in caplog.text
    await session.close()


async def test_from_token_reads_credential_from_cookie_jar(settings, socket_factory) -> None:
    repository = FakeRepository(_page())
    session = NotificationSession.from_token(
        TOKEN, settings=settings, repository=repository, client_factory=socket_factory
    )

    assert session.credentials.get_token() == TOKEN
    assert session.recipient_id == "u1"

    await session.start()
    status = session.status()
    await session.close()

    assert status["status"] == CONNECTION_STATUS_CONNECTED
    assert status["connected"] is True
    assert status["channel_id"] == "sid-1"
    assert status["listener_attached"] is True
    assert status["unread_count"] == 3
