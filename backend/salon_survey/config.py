"""Environment-driven settings for the survey API."""
from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Tuple

DEFAULT_DATABASE_URL = "sqlite:///./survey.db"
DEFAULT_CORS_ORIGINS = "http://localhost:3000"
_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    database_url: str = DEFAULT_DATABASE_URL
    admin_password: Optional[str] = None
    rate_limit: int = 10
    rate_window_seconds: int = 3600
    stats_fetch_limit: int = 2000
    stats_recent_limit: int = 50
    store_timeout_seconds: float = 5.0
    enforce_completion_cookie: bool = True
    cors_origins: Tuple[str, ...] = (DEFAULT_CORS_ORIGINS,)
    host: str = "127.0.0.1"
    port: int = 8000


def _positive_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}") from exc
    if value <= 0:
        raise RuntimeError(f"{name} must be positive, got {value}")
    return value


def _positive_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be a number, got {raw!r}") from exc
    if value <= 0:
        raise RuntimeError(f"{name} must be positive, got {value}")
    return value


def _flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in _TRUTHY


def load_settings() -> Settings:
    """Build settings from ``SURVEY_*`` environment variables."""

    origins = os.environ.get("SURVEY_CORS_ORIGINS", DEFAULT_CORS_ORIGINS)
    return Settings(
        database_url=os.environ.get("SURVEY_DATABASE_URL", DEFAULT_DATABASE_URL),
        admin_password=os.environ.get("SURVEY_ADMIN_PASSWORD") or None,
        rate_limit=_positive_int("SURVEY_RATE_LIMIT", 10),
        rate_window_seconds=_positive_int("SURVEY_RATE_WINDOW", 3600),
        stats_fetch_limit=_positive_int("SURVEY_STATS_FETCH_LIMIT", 2000),
        stats_recent_limit=_positive_int("SURVEY_STATS_RECENT_LIMIT", 50),
        store_timeout_seconds=_positive_float("SURVEY_STORE_TIMEOUT_SECONDS", 5.0),
        enforce_completion_cookie=_flag("SURVEY_ENFORCE_COMPLETION_COOKIE", True),
        cors_origins=tuple(origin.strip() for origin in origins.split(",") if origin.strip()),
        host=os.environ.get("SURVEY_HOST", "127.0.0.1"),
        port=_positive_int("SURVEY_PORT", 8000),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()


def reset_settings() -> None:
    """Drop cached settings. Intended for use in tests."""

    get_settings.cache_clear()
