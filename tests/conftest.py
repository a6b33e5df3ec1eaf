"""
Pytest configuration and shared fixtures for tarihtebugun tests.

Every fixture here works on an in-memory store and a controllable clock, so
no test touches the disk or the network.
"""

from __future__ import annotations

import os
from datetime import datetime

import pytest

# Set environment variables BEFORE any imports so the module-level app stays in memory
os.environ["STORAGE_PATH"] = ""
os.environ["ENABLE_SCHEDULER"] = "false"

from tarihtebugun.adapters.base import Event, EventCategory
from tarihtebugun.adapters.storage import MemoryBackend, PersistentStore
from tarihtebugun.adapters.utils import CacheManager, RateLimiter
from tarihtebugun.context import build_context
from tarihtebugun.settings import Settings

# Noon local time, so an hour either way stays on the same calendar day.
NOON = datetime(2026, 10, 18, 12, 0, 0).timestamp()
DAY = 24 * 60 * 60


class FakeClock:
    def __init__(self, now: float = NOON) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> PersistentStore:
    return PersistentStore(MemoryBackend())


@pytest.fixture
def test_settings() -> Settings:
    return Settings(api_url="https://example.test/tarihtebugun/", storage_path="")


@pytest.fixture
def cache(store: PersistentStore, test_settings: Settings, clock: FakeClock) -> CacheManager:
    return CacheManager(
        store,
        key=test_settings.cache_key,
        date_key=test_settings.cache_date_key,
        ttl_seconds=test_settings.cache_ttl_seconds,
        clock=clock,
    )


@pytest.fixture
def limiter(store: PersistentStore, test_settings: Settings, clock: FakeClock) -> RateLimiter:
    return RateLimiter(
        store,
        key=test_settings.rate_limit_key,
        max_requests=test_settings.rate_limit_max_requests,
        window_seconds=test_settings.rate_limit_window_seconds,
        clock=clock,
    )


@pytest.fixture
def ctx(test_settings: Settings, store: PersistentStore, clock: FakeClock):
    return build_context(test_settings, store=store, clock=clock)


@pytest.fixture
def sample_events() -> list[Event]:
    return [
        Event("1923", "Türkiye Cumhuriyeti'nin ilanı", EventCategory.OCCURRENCE),
        Event("1881", "Mustafa Kemal Atatürk doğdu", EventCategory.BIRTH),
        Event("1938", "Mustafa Kemal Atatürk öldü", EventCategory.DEATH),
    ]


@pytest.fixture
def make_response(mocker):
    """Factory for mocked ``requests.Response`` objects carrying a JSON body."""

    def _make(status_code: int = 200, payload=None, json_error: Exception = None):
        resp = mocker.Mock()
        resp.status_code = status_code
        if json_error is not None:
            resp.json.side_effect = json_error
        else:
            resp.json.return_value = payload
        return resp

    return _make
