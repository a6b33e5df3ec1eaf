from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
import logging
import time

from tarihtebugun.adapters.base import EventSource
from tarihtebugun.adapters.storage import PersistentStore, open_store
from tarihtebugun.adapters.utils import CacheManager, Clock, RateLimiter
from tarihtebugun.adapters.zumbo import TarihteBugunAdapter
from tarihtebugun.settings import Settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass
class AppContext:
    settings: Settings
    store: PersistentStore
    cache: CacheManager
    limiter: RateLimiter
    service: EventSource


def build_context(settings: Settings, store: Optional[PersistentStore] = None, clock: Clock = time.time) -> AppContext:
    """Wire the acquisition pipeline. The only place its pieces are constructed."""
    if store is None:
        store = open_store(settings.storage_path)
    cache = CacheManager(
        store,
        key=settings.cache_key,
        date_key=settings.cache_date_key,
        ttl_seconds=settings.cache_ttl_seconds,
        clock=clock,
    )
    limiter = RateLimiter(
        store,
        key=settings.rate_limit_key,
        max_requests=settings.rate_limit_max_requests,
        window_seconds=settings.rate_limit_window_seconds,
        clock=clock,
    )
    service = TarihteBugunAdapter(cache, limiter, settings.api_url, timeout=settings.request_timeout_seconds)
    return AppContext(settings, store, cache, limiter, service)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
