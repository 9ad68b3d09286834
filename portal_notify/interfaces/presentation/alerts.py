"""Transient alerts shown when a notification arrives live."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Deque

from portal_notify.utils import now_in_app_timezone

ALERT_LEVEL_INFO = "info"
ALERT_LEVEL_ERROR = "error"


@dataclass(frozen=True)
class Alert:
    """Toast-style message with an expiry time."""

    message: str
    icon: str
    level: str
    expires_at: datetime


class AlertQueue:
    """Hold alerts until they expire."""

    def __init__(
        self,
        duration_seconds: float = 5.0,
        *,
        clock: Callable[[], datetime] = now_in_app_timezone,
        max_alerts: int = 20,
    ) -> None:
        self.duration = timedelta(seconds=duration_seconds)
        self._clock = clock
        self._alerts: Deque[Alert] = deque(maxlen=max_alerts)

    def push(
        self, message: str, *, icon: str = "🔔", level: str = ALERT_LEVEL_INFO
    ) -> Alert:
        alert = Alert(
            message=message,
            icon=icon,
            level=level,
            expires_at=self._clock() + self.duration,
        )
        self._alerts.append(alert)
        return alert

    def active(self) -> list[Alert]:
        """Return the alerts still on screen, dropping expired ones."""

        now = self._clock()
        while self._alerts and self._alerts[0].expires_at <= now:
            self._alerts.popleft()
        return [alert for alert in self._alerts if alert.expires_at > now]

    def clear(self) -> None:
        self._alerts.clear()


__all__ = ["ALERT_LEVEL_ERROR", "ALERT_LEVEL_INFO", "Alert", "AlertQueue"]
