"""Shared fixtures for the notification client test-suite."""

from __future__ import annotations

import pathlib
import sys

TESTS_DIR = pathlib.Path(__file__).resolve().parent
PROJECT_ROOT = TESTS_DIR.parent
for path in (PROJECT_ROOT, TESTS_DIR):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

import pytest

from notification_fakes import FakeSocketFactory
from portal_notify.config import Settings, reset_settings_cache
from portal_notify.utils import get_app_timezone


@pytest.fixture
def anyio_backend() -> str:
    # The supervisor schedules its retry timer on the asyncio loop.
    return "asyncio"


@pytest.fixture(autouse=True)
def _isolated_settings():
    reset_settings_cache()
    get_app_timezone.cache_clear()
    yield
    reset_settings_cache()
    get_app_timezone.cache_clear()


@pytest.fixture
def settings() -> Settings:
    """Settings pointing at a fake broker with very short retry delays."""

    return Settings(
        server_url="http://broker.test",
        connect_timeout=1.0,
        retry_initial_delay=0.01,
        retry_multiplier=2.0,
        retry_max_delay=0.04,
        retry_max_attempts=3,
        page_size=10,
    )


@pytest.fixture
def socket_factory() -> FakeSocketFactory:
    return FakeSocketFactory()
