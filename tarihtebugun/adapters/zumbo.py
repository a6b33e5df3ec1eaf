from __future__ import annotations

from typing import List, Optional
import logging
import requests

from .base import AcquisitionError, Event, FailureKind
from .utils import CacheManager, RateLimiter, SingleFlight

logger = logging.getLogger(__name__)


class TarihteBugunAdapter:
    """Today's events from the zumbo.net "tarihte bugün" endpoint.

    Serves from the cache while it is valid for today, otherwise spends one
    rate-limit slot on a single GET. Failures raise ``AcquisitionError`` and
    are never retried here.
    """

    source_name = "tarihtebugun"
    EVENTS_FIELD = "tarihtebugun"

    def __init__(
        self,
        cache: CacheManager,
        limiter: RateLimiter,
        url: str,
        timeout: Optional[float] = 20,
    ) -> None:
        self.cache = cache
        self.limiter = limiter
        self.url = url
        self.timeout = timeout
        self._flight = SingleFlight()

    def fetch_events(self) -> List[Event]:
        return self._flight.do(self.cache.today(), self._acquire)

    def _acquire(self) -> List[Event]:
        cached = self.cache.get()
        if cached is not None:
            logger.info("Data loaded from cache (%d events)", len(cached))
            return cached

        if not self.limiter.check():
            raise AcquisitionError(FailureKind.RATE_LIMIT_EXCEEDED)

        try:
            resp = requests.get(self.url, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning("Network error fetching %s: %s", self.url, e)
            raise AcquisitionError(FailureKind.NETWORK_FAILURE, detail=str(e)) from e

        if not 200 <= resp.status_code < 300:
            logger.warning("HTTP %s from %s", resp.status_code, self.url)
            raise AcquisitionError(FailureKind.HTTP_ERROR, status=resp.status_code)

        events = self._parse(resp)

        if not self.cache.set(events):
            logger.warning("Fetched %d events but could not cache them", len(events))
        return events

    def _parse(self, resp: requests.Response) -> List[Event]:
        try:
            data = resp.json()
        except ValueError as e:
            raise AcquisitionError(FailureKind.INVALID_RESPONSE, detail="body is not JSON") from e

        if not isinstance(data, dict) or not data.get("success"):
            raise AcquisitionError(FailureKind.INVALID_RESPONSE, detail="success flag missing or false")

        items = data.get(self.EVENTS_FIELD)
        if not isinstance(items, list):
            raise AcquisitionError(FailureKind.INVALID_RESPONSE, detail=f"{self.EVENTS_FIELD} list missing")

        try:
            return [Event.from_wire(it) for it in items]
        except ValueError as e:
            raise AcquisitionError(FailureKind.INVALID_RESPONSE, detail=str(e)) from e
