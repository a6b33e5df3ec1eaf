# tarihtebugun/run_fetch.py
import os
import sys
from zoneinfo import ZoneInfo
from datetime import datetime
from typing import Set
from .index import refresh_events


def _allowed_hours(raw: str) -> Set[int]:
    return {int(part) for part in (p.strip() for p in raw.split(",")) if part.isdigit()}


def _should_run_now() -> bool:
    """Hour gate for an hourly cron: run only at the RUN_HOURS_LOCAL hours in GATE_TZ.

    Without both variables every invocation runs.
    """
    hours = os.getenv("RUN_HOURS_LOCAL", "")
    zone = os.getenv("GATE_TZ", "")
    if not (hours and zone):
        return True
    return datetime.now(ZoneInfo(zone)).hour in _allowed_hours(hours)


def main() -> int:
    if not _should_run_now():
        print("⏭️  Skipped: current local hour not in RUN_HOURS_LOCAL")
        return 0
    print("⏰ Refreshing today's events")
    count = refresh_events()
    if count is None:
        print("❌ Refresh failed, see log for the failure code")
        return 1
    print(f"✅ {count} events available for today")
    return 0


if __name__ == "__main__":
    sys.exit(main())
