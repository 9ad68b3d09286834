"""Diagnostic script that follows the notification mailbox of a user."""

from __future__ import annotations

import argparse
import logging
import os
import signal

import anyio

from portal_notify.application.use_cases.notifications import NotificationSession
from portal_notify.config import get_settings
from portal_notify.domain.entities import Notification
from portal_notify.interfaces.presentation import AlertQueue, NotificationBell, icon_for


def parse_args() -> argparse.Namespace:
    """Parse command line arguments for the watcher."""

    parser = argparse.ArgumentParser(
        description="Connect to the portal broker and print notifications as they arrive.",
    )
    parser.add_argument(
        "--token",
        default=os.environ.get("PORTAL_TOKEN"),
        help="Bearer token issued at login (default: $PORTAL_TOKEN)",
    )
    parser.add_argument(
        "--user-id",
        default=None,
        help="Recipient id; read from the token when omitted",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging of the channel lifecycle",
    )
    return parser.parse_args()


def _print_notification(notification: Notification) -> None:
    timestamp = notification.created_at.strftime("%b %d, %Y %H:%M")
    marker = " " if notification.read else "*"
    print(
        f"{marker} {icon_for(notification)} [{timestamp}] "
        f"{notification.title}: {notification.message}"
    )


async def watch(token: str, user_id: str | None) -> None:
    settings = get_settings()
    alerts = AlertQueue(settings.alert_duration_seconds)
    bell = NotificationBell(alerts)

    def on_alert(notification: Notification) -> None:
        bell.show_alert(notification)
        _print_notification(notification)

    session = NotificationSession.from_token(
        token,
        settings=settings,
        recipient_id=user_id,
        on_alert=on_alert,
        on_error=bell.show_error,
        on_give_up=bell.report_connection_lost,
    )
    bell.bind(session.synchronizer, retry_connection=session.supervisor.retry)

    async with session:
        print(f"Unread: {bell.unread_count}")
        for notification in bell.items:
            _print_notification(notification)
        print(f"Channel status: {session.status()['status']}")

        with anyio.open_signal_receiver(signal.SIGINT, signal.SIGTERM) as signals:
            async for _ in signals:
                break


def main() -> None:
    """Run the watcher until interrupted."""

    args = parse_args()
    if not args.token:
        raise SystemExit("A session token is required (--token or PORTAL_TOKEN).")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    anyio.run(watch, args.token, args.user_id)


if __name__ == "__main__":
    main()
