"""Timestamp parsing and display timezone helpers."""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone, tzinfo
from functools import lru_cache
from typing import Final

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from portal_notify.config import get_settings

_UTC_OFFSET: Final[re.Pattern[str]] = re.compile(
    r"^(?:UTC|GMT)(?P<sign>[+-])(?P<hours>\d{1,2})(?::?(?P<minutes>\d{2}))?$",
    re.IGNORECASE,
)


@lru_cache(maxsize=1)
def get_app_timezone() -> tzinfo:
    """Return the zone notification timestamps are displayed in.

    Read from ``APP_TIMEZONE``; accepts IANA names as well as ``UTC+hh:mm``
    offsets. Anything else, including an unset value, means UTC.
    """

    name = (get_settings().app_timezone or "").strip()
    if not name:
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return _fixed_offset(name) or timezone.utc


def now_in_app_timezone() -> datetime:
    return datetime.now(tz=get_app_timezone())


def ensure_app_timezone(value: datetime | None) -> datetime | None:
    """Express ``value`` in the display zone; naive values are taken as UTC."""

    if value is None:
        return None
    aware = value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)
    return aware.astimezone(get_app_timezone())


def parse_timestamp(value: str | datetime | int | float | None) -> datetime | None:
    """Parse an ISO-8601 string or epoch milliseconds into an aware datetime.

    The broker serializes dates with ``toISOString`` (trailing ``Z``); older
    records may carry epoch milliseconds. Unusable values yield ``None``.
    """

    if isinstance(value, datetime):
        return ensure_app_timezone(value)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            parsed = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
        return ensure_app_timezone(parsed)
    if not isinstance(value, str) or not value.strip():
        return None

    text = value.strip()
    if text[-1] in "zZ":
        text = f"{text[:-1]}+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    return ensure_app_timezone(parsed)


def _fixed_offset(name: str) -> tzinfo | None:
    match = _UTC_OFFSET.match(name)
    if match is None:
        return None
    offset = timedelta(
        hours=int(match.group("hours")), minutes=int(match.group("minutes") or 0)
    )
    return timezone(-offset if match.group("sign") == "-" else offset)
