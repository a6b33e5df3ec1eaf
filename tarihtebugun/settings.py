from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
import os


@dataclass
class Settings:
    # Remote endpoint
    api_url: str = "https://api.zumbo.net/tarihtebugun/"
    request_timeout_seconds: float = 20.0

    # Persistence (empty path keeps everything in memory)
    storage_path: str = "tarihtebugun_store.json"
    cache_key: str = "tarihtebugun_cache"
    cache_date_key: str = "tarihtebugun_cache_date"
    rate_limit_key: str = "tarihtebugun_requests"

    # Runtime config
    cache_ttl_seconds: int = 60 * 60
    rate_limit_window_seconds: int = 60
    rate_limit_max_requests: int = 20

    # Background refresh
    enable_scheduler: bool = False
    refresh_interval_minutes: int = 60

    log_level: str = "INFO"

    @staticmethod
    def _parse_int(raw: Optional[str], default: int) -> int:
        if raw is None or not raw.strip():
            return default
        try:
            return int(raw)
        except ValueError:
            return default

    @staticmethod
    def _parse_float(raw: Optional[str], default: float) -> float:
        if raw is None or not raw.strip():
            return default
        try:
            return float(raw)
        except ValueError:
            return default

    @classmethod
    def load(cls) -> "Settings":
        return cls(
            api_url=os.getenv("TARIHTEBUGUN_API_URL", cls.api_url),
            request_timeout_seconds=cls._parse_float(os.getenv("REQUEST_TIMEOUT_SECONDS"), 20.0),
            storage_path=os.getenv("STORAGE_PATH", cls.storage_path),
            cache_key=os.getenv("CACHE_KEY", cls.cache_key),
            cache_date_key=os.getenv("CACHE_DATE_KEY", cls.cache_date_key),
            rate_limit_key=os.getenv("RATE_LIMIT_KEY", cls.rate_limit_key),
            cache_ttl_seconds=cls._parse_int(os.getenv("CACHE_TTL_SECONDS"), 60 * 60),
            rate_limit_window_seconds=cls._parse_int(os.getenv("RATE_LIMIT_WINDOW_SECONDS"), 60),
            rate_limit_max_requests=cls._parse_int(os.getenv("RATE_LIMIT_MAX_REQUESTS"), 20),
            enable_scheduler=os.getenv("ENABLE_SCHEDULER", "false").lower() == "true",
            refresh_interval_minutes=cls._parse_int(os.getenv("REFRESH_INTERVAL_MINUTES"), 60),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )


# A module-level settings instance
settings = Settings.load()
