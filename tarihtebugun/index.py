from fastapi import Depends, FastAPI, Query
from fastapi.responses import JSONResponse
from datetime import datetime
from dotenv import load_dotenv
from typing import List, Dict, Optional
import logging
import re
import threading
import time

import schedule


# Load environment variables from .env file
load_dotenv()

app = FastAPI()

from tarihtebugun.settings import settings
from tarihtebugun.adapters.base import AcquisitionError, Event, EventCategory, FailureKind
from tarihtebugun.context import AppContext, build_context, configure_logging

configure_logging(settings.log_level)
logger = logging.getLogger(__name__)

_context = build_context(settings)


def get_context() -> AppContext:
    return _context


# ------------------------ Locale ------------------------

ALL_FILTER = "Tümü"
EVENT_TYPES = [ALL_FILTER] + [c.value for c in EventCategory]

MONTHS = [
    "Ocak", "Şubat", "Mart", "Nisan", "Mayıs", "Haziran",
    "Temmuz", "Ağustos", "Eylül", "Ekim", "Kasım", "Aralık",
]

# Sunday first
DAYS = ["Pazar", "Pazartesi", "Salı", "Çarşamba", "Perşembe", "Cuma", "Cumartesi"]

DEFAULT_ERROR_MESSAGE = "Veriler yüklenirken bir hata oluştu. Lütfen daha sonra tekrar deneyin."


def format_date(date: datetime) -> str:
    day_name = DAYS[(date.weekday() + 1) % 7]
    return f"{day_name}, {date.day} {MONTHS[date.month - 1]} {date.year}"


def error_message(err: AcquisitionError) -> str:
    if err.kind is FailureKind.RATE_LIMIT_EXCEEDED:
        return "⚠️ Çok fazla istek gönderildi. Lütfen 1 dakika bekleyip tekrar deneyin."
    if err.kind is FailureKind.NETWORK_FAILURE:
        return "🌐 İnternet bağlantınızı kontrol edin."
    if err.kind is FailureKind.INVALID_RESPONSE:
        return "⚠️ Sunucudan geçersiz yanıt alındı."
    if err.kind is FailureKind.HTTP_ERROR and err.status == 429:
        return "⚠️ API rate limit aşıldı. Lütfen daha sonra tekrar deneyin."
    return DEFAULT_ERROR_MESSAGE


def error_status(err: AcquisitionError) -> int:
    if err.kind is FailureKind.RATE_LIMIT_EXCEEDED or err.status == 429:
        return 429
    if err.kind is FailureKind.NETWORK_FAILURE:
        return 503
    return 502


# ------------------------ Presentation ------------------------

_YEAR_RE = re.compile(r"-?\d+")


def _year_value(event: Event) -> Optional[int]:
    m = _YEAR_RE.match(event.year.strip())
    return int(m.group()) if m else None


def sort_events(events: List[Event], order: str = "desc") -> List[Event]:
    if order == "none":
        return list(events)
    numeric = [e for e in events if _year_value(e) is not None]
    other = [e for e in events if _year_value(e) is None]
    numeric.sort(key=_year_value, reverse=(order == "desc"))
    return numeric + other


def filter_events(events: List[Event], category: str) -> List[Event]:
    if category == ALL_FILTER:
        return list(events)
    return [e for e in events if e.category.value == category]


def event_stats(events: List[Event]) -> Dict[str, int]:
    stats = {"total": len(events)}
    for c in EventCategory:
        stats[c.value] = 0
    for e in events:
        stats[e.category.value] += 1
    return stats


# ------------------------ Scheduled refresh ------------------------

def refresh_events(ctx: Optional[AppContext] = None) -> Optional[int]:
    """Warm the cache. Returns the event count, or None when acquisition failed."""
    ctx = ctx or _context
    try:
        events = ctx.service.fetch_events()
    except AcquisitionError as e:
        logger.warning("Scheduled refresh failed: %s", e.code)
        return None
    logger.info("Scheduled refresh ok: %d events", len(events))
    return len(events)


def schedule_refresh() -> None:
    schedule.every(settings.refresh_interval_minutes).minutes.do(refresh_events)
    logger.info("Refresh scheduler initialized - every %d minutes", settings.refresh_interval_minutes)
    refresh_events()
    while True:
        schedule.run_pending()
        time.sleep(30)


def start_scheduler() -> None:
    scheduler_thread = threading.Thread(target=schedule_refresh, daemon=True)
    scheduler_thread.start()


@app.on_event("startup")
async def startup_event():
    if settings.enable_scheduler:
        start_scheduler()
        logger.info("Events refresher started with automatic scheduling")
    else:
        logger.info("In-process scheduler disabled (ENABLE_SCHEDULER=false)")


# ------------------------ Routes ------------------------

@app.get("/")
def root():
    return {"message": "Tarihte Bugün API is running", "endpoints": ["/events", "/api/health"]}


@app.get("/api/health")
def health(ctx: AppContext = Depends(get_context)):
    return {
        "status": "healthy",
        "today": ctx.cache.today(),
        "cached": ctx.cache.has_record(),
        "rate_limit_remaining": ctx.limiter.remaining(),
    }


@app.get("/events")
def get_events(
    category: str = Query(ALL_FILTER),
    sort: str = Query("desc", pattern="^(desc|asc|none)$"),
    ctx: AppContext = Depends(get_context),
):
    """Return today's events, optionally narrowed to one category.

    Stats always describe the full list; ``count`` describes the returned items.
    """
    if category not in EVENT_TYPES:
        return JSONResponse(
            status_code=422,
            content={"ok": False, "error": "INVALID_CATEGORY", "allowed": EVENT_TYPES},
        )

    try:
        events = ctx.service.fetch_events()
    except AcquisitionError as e:
        logger.warning("Application error: %s", e)
        return JSONResponse(
            status_code=error_status(e),
            content={"ok": False, "error": e.code, "message": error_message(e)},
        )

    items = sort_events(filter_events(events, category), sort)
    if not items:
        logger.info("No events in category %s", category)

    return {
        "ok": True,
        "date": format_date(datetime.fromtimestamp(ctx.cache.clock())),
        "category": category,
        "count": len(items),
        "stats": event_stats(events),
        "items": [e.to_wire() for e in items],
    }
