"""Tests for the single notification listener registration."""

from __future__ import annotations

import json
import pathlib
import sys

ROOT = pathlib.Path(__file__).resolve().parents[3]
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

import pytest

from portal_notify.infrastructure.realtime import (
    NOTIFICATION_EVENT,
    ChannelConnectionManager,
    EventListenerRegistry,
)

pytestmark = pytest.mark.anyio

PAYLOAD = {
    "_id": "n1",
    "type": "announcement",
    "relatedId": "a1",
    "message": "New post",
}


async def _connected(settings, socket_factory):
    manager = ChannelConnectionManager(settings, client_factory=socket_factory)
    await manager.connect("jwt-token")
    return manager, EventListenerRegistry(manager)


async def test_attach_without_channel_fails(settings, socket_factory, caplog) -> None:
    registry = EventListenerRegistry(
        ChannelConnectionManager(settings, client_factory=socket_factory)
    )

    with caplog.at_level("WARNING"):
        assert registry.attach(lambda notification: None) is False

    assert not registry.attached
    assert "no active channel" in caplog.text


async def test_payload_is_delivered_as_entity(settings, socket_factory) -> None:
    manager, registry = await _connected(settings, socket_factory)
    received = []

    assert registry.attach(received.append) is True
    await socket_factory.last.trigger(NOTIFICATION_EVENT, PAYLOAD)
    await socket_factory.last.trigger(NOTIFICATION_EVENT, json.dumps({**PAYLOAD, "_id": "n2"}))

    assert [item.id for item in received] == ["n1", "n2"]
    assert received[0].related_id == "a1"
    assert received[0].message == "New post"


async def test_repeated_attach_keeps_a_single_listener(settings, socket_factory) -> None:
    """Calling attach again on the same channel never duplicates delivery."""

    manager, registry = await _connected(settings, socket_factory)
    received = []

    for _ in range(3):
        assert registry.attach(received.append) is True
    await socket_factory.last.trigger(NOTIFICATION_EVENT, PAYLOAD)

    assert manager.active().listener_count(NOTIFICATION_EVENT) == 1
    assert len(received) == 1
    assert registry.attached


async def test_reconnect_cycles_do_not_duplicate_delivery(settings, socket_factory) -> None:
    manager, registry = await _connected(settings, socket_factory)
    received = []
    registry.attach(received.append)

    for _ in range(4):
        await socket_factory.last.drop()
        await manager.connect("jwt-token")
        registry.attach(received.append)

    await socket_factory.last.trigger(NOTIFICATION_EVENT, PAYLOAD)

    assert len(socket_factory.clients) == 5
    assert manager.active().listener_count(NOTIFICATION_EVENT) == 1
    assert len(received) == 1


async def test_malformed_payload_is_dropped(settings, socket_factory, caplog) -> None:
    manager, registry = await _connected(settings, socket_factory)
    received = []
    registry.attach(received.append)

    with caplog.at_level("WARNING"):
        await socket_factory.last.trigger(NOTIFICATION_EVENT, {"type": "job"})
        await socket_factory.last.trigger(NOTIFICATION_EVENT, "{not json")

    assert received == []
    assert "Dropping malformed notification payload" in caplog.text


async def test_detach_stops_delivery(settings, socket_factory) -> None:
    manager, registry = await _connected(settings, socket_factory)
    received = []
    registry.attach(received.append)

    registry.detach()
    await socket_factory.last.trigger(NOTIFICATION_EVENT, PAYLOAD)

    assert received == []
    assert not registry.attached
