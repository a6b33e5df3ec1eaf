from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, TypeVar
import logging
import math
import threading
import time

from .base import Event
from .storage import PersistentStore

logger = logging.getLogger(__name__)

Clock = Callable[[], float]
T = TypeVar("T")


def calendar_day_key(now: float) -> str:
    """Local calendar day of an epoch instant, as ``day-month-year``."""
    local = datetime.fromtimestamp(now)
    return f"{local.day}-{local.month}-{local.year}"


class RateLimiter:
    """At most ``max_requests`` admitted requests in any trailing ``window_seconds``.

    The log of admitted instants lives in the store, so the quota survives
    restarts. Limiters in one process may share a store; separate processes
    writing the same file are not coordinated.
    """

    def __init__(
        self,
        store: PersistentStore,
        key: str,
        max_requests: int = 20,
        window_seconds: float = 60,
        clock: Clock = time.time,
    ) -> None:
        self.store = store
        self.key = key
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.clock = clock

    def _recent(self, now: float) -> List[float]:
        raw = self.store.get(self.key)
        if not isinstance(raw, list):
            return []
        return [t for t in raw if isinstance(t, (int, float)) and now - t < self.window_seconds]

    def check(self) -> bool:
        now = self.clock()
        requests = self._recent(now)
        if len(requests) >= self.max_requests:
            logger.warning("Rate limit reached: %d requests in the last %ss", len(requests), self.window_seconds)
            return False
        requests.append(now)
        self.store.set(self.key, requests)
        return True

    def remaining(self) -> int:
        return max(0, self.max_requests - len(self._recent(self.clock())))


class CacheManager:
    """Today's event list, valid for one calendar day and at most ``ttl_seconds``."""

    def __init__(
        self,
        store: PersistentStore,
        key: str,
        date_key: str,
        ttl_seconds: float = 3600,
        clock: Clock = time.time,
    ) -> None:
        self.store = store
        self.key = key
        self.date_key = date_key
        self.ttl = ttl_seconds
        self.clock = clock

    def today(self) -> str:
        return calendar_day_key(self.clock())

    def is_valid_for_today(self) -> bool:
        # Writes on mismatch so the first check of a new day resets the marker.
        today = self.today()
        if self.store.get(self.date_key) != today:
            logger.info("New day detected (%s), clearing cache", today)
            self.clear()
            self.store.set(self.date_key, today)
            return False
        return True

    def get(self) -> Optional[List[Event]]:
        if not self.is_valid_for_today():
            return None

        cached: Any = self.store.get(self.key)
        if not cached:
            return None

        try:
            timestamp = float(cached["timestamp"])
            if not math.isfinite(timestamp):
                raise ValueError(f"timestamp is not a finite number: {timestamp}")
            events = [Event.from_wire(item) for item in cached["events"]]
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Discarding unreadable cache record: %s", e)
            self.clear()
            return None

        if self.clock() - timestamp >= self.ttl:
            logger.info("Cache expired, clearing")
            self.clear()
            return None

        return events

    def set(self, events: List[Event]) -> bool:
        now = self.clock()
        record = {"events": [e.to_wire() for e in events], "timestamp": now}
        stored = self.store.set(self.key, record)
        self.store.set(self.date_key, calendar_day_key(now))
        return stored

    def clear(self) -> None:
        self.store.remove(self.key)

    def has_record(self) -> bool:
        return self.store.get(self.key) is not None


class _Call:
    def __init__(self) -> None:
        self.done = threading.Event()
        self.result: Any = None
        self.finished = False
        self.error: Optional[BaseException] = None


class SingleFlight:
    """Collapses concurrent calls sharing a key into one execution.

    Callers arriving while a call for the same key is running wait for it and
    get its result, or its exception re-raised. If the leader dies without
    either, waiters get a RuntimeError instead of a missing result.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._calls: Dict[str, _Call] = {}

    def do(self, key: str, fn: Callable[[], T]) -> T:
        with self._lock:
            call = self._calls.get(key)
            leader = call is None
            if call is None:
                call = _Call()
                self._calls[key] = call

        if not leader:
            call.done.wait()
            if call.error is not None:
                raise call.error
            if not call.finished:
                raise RuntimeError(f"in-flight call for {key!r} was aborted")
            return call.result

        try:
            call.result = fn()
            call.finished = True
            return call.result
        except Exception as e:
            call.error = e
            raise
        finally:
            with self._lock:
                del self._calls[key]
            call.done.set()
