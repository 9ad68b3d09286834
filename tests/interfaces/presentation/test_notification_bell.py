"""Tests for the notification bell view model and alert queue."""

from __future__ import annotations

import pathlib
import sys
from datetime import datetime, timedelta, timezone

ROOT = pathlib.Path(__file__).resolve().parents[3]
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

import pytest

from notification_fakes import FakeRepository, make_notification, make_page
from portal_notify.application.use_cases.notifications import NotificationSynchronizer
from portal_notify.domain.errors import MutationConfirmationFailure
from portal_notify.interfaces.presentation import (
    ALERT_LEVEL_ERROR,
    AlertQueue,
    NotificationBell,
    icon_for,
    link_for,
)


class _Clock:
    def __init__(self) -> None:
        self.now = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now


def _bell(*items, unread=None):
    repository = FakeRepository(make_page(list(items), unread=unread))
    alerts = AlertQueue(5, clock=_Clock())
    bell = NotificationBell(alerts)
    synchronizer = NotificationSynchronizer(
        repository, on_alert=bell.show_alert, on_error=bell.show_error
    )
    bell.bind(synchronizer)
    return bell, repository


@pytest.mark.parametrize(
    ("kind", "related_id", "expected"),
    [
        ("announcement", "a1", "/announcement/a1"),
        ("comment", "a2", "/announcement/a2"),
        ("job", "j1", "/job-listings"),
        ("application_submitted", "ap1", "/applications/ap1"),
        ("application_advisor_action", "ap2", "/applications/ap2"),
        ("application_coordinator_action", "ap3", "/applications/ap3"),
        ("announcement", None, "#"),
        ("other", "x", "#"),
    ],
)
def test_link_for_routes_by_type(kind, related_id, expected) -> None:
    notification = make_notification("n1", type=kind, related_id=related_id)

    assert link_for(notification) == expected


def test_icon_for_falls_back_to_bell() -> None:
    assert icon_for(make_notification("n1", type="job")) == "💼"
    assert icon_for(make_notification("n2", type="other")) == "🔔"


@pytest.mark.anyio
@pytest.mark.parametrize(("unread", "badge"), [(0, ""), (3, "3"), (9, "9"), (12, "9+")])
async def test_badge_caps_large_counts(unread, badge) -> None:
    bell, _ = _bell(make_notification("n1"), unread=unread)
    await bell.synchronizer.load_page(1)

    assert bell.badge_text == badge


@pytest.mark.anyio
async def test_click_marks_read_closes_panel_and_returns_link() -> None:
    """Opening an unread item marks it read and navigates to its target."""

    bell, repository = _bell(
        make_notification("n1", related_id="a1"), make_notification("n2", read=True)
    )
    await bell.synchronizer.load_page(1)
    bell.toggle()
    assert bell.is_open

    link = await bell.click(bell.items[0])
    await bell.click(bell.items[1])

    assert link == "/announcement/a1"
    assert not bell.is_open
    assert bell.unread_count == 0
    assert repository.calls.count(("mark_as_read", "n1")) == 1
    assert ("mark_as_read", "n2") not in repository.calls


@pytest.mark.anyio
async def test_realtime_insert_shows_an_alert() -> None:
    bell, _ = _bell()
    await bell.synchronizer.load_page(1)

    bell.synchronizer.apply_realtime_insert(make_notification("n9", message="New post"))

    active = bell.alerts.active()
    assert [alert.message for alert in active] == ["New post"]
    assert bell.badge_text == "1"


@pytest.mark.anyio
async def test_rejected_mutation_is_shown_as_error_alert() -> None:
    bell, repository = _bell(make_notification("n1"))
    await bell.synchronizer.load_page(1)
    repository.failing.add("delete")

    assert await bell.delete("n1") is False

    alert = bell.alerts.active()[-1]
    assert alert.level == ALERT_LEVEL_ERROR
    assert alert.message == "Could not delete the notification."
    assert [item.id for item in bell.items] == ["n1"]


@pytest.mark.anyio
async def test_retry_reloads_and_reconnects_after_give_up() -> None:
    bell, repository = _bell(make_notification("n1"))
    reconnects = []

    async def retry_connection() -> bool:
        reconnects.append(True)
        return True

    bell.bind(bell.synchronizer, retry_connection=retry_connection)
    repository.failing.add("list_page")
    await bell.synchronizer.load_page(1)
    assert bell.error is not None

    bell.report_connection_lost(None)
    repository.failing.clear()

    assert await bell.retry() is True
    assert bell.error is None
    assert reconnects == [True]
    assert not bell.connection_failed


def test_unbound_bell_refuses_access() -> None:
    bell = NotificationBell(AlertQueue())

    with pytest.raises(RuntimeError):
        _ = bell.items


def test_alerts_expire_after_their_duration() -> None:
    clock = _Clock()
    alerts = AlertQueue(5, clock=clock)
    alerts.push("Primero")
    clock.now += timedelta(seconds=3)
    alerts.push("Segundo")

    clock.now += timedelta(seconds=2)
    assert [alert.message for alert in alerts.active()] == ["Segundo"]

    clock.now += timedelta(seconds=3)
    assert alerts.active() == []


def test_error_alert_mapping_falls_back_to_failure_text() -> None:
    bell = NotificationBell(AlertQueue(clock=_Clock()))

    bell.show_error(MutationConfirmationFailure("archive", "n1"))

    assert bell.alerts.active()[0].message == "Could not confirm 'archive' for notification n1"
