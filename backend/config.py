"""
Runtime settings read from the environment (.env is loaded by main.py).
"""

import os
import logging
from dataclasses import dataclass, field
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

DEFAULT_ALLOWED_ORIGINS = ("http://localhost:8080", "http://localhost:8000", "http://127.0.0.1:8000")
DEFAULT_SOURCE_TIMEOUT = 15.0  # Seconds each source gets before it counts as unavailable
DEFAULT_HTTP_TIMEOUT = 10.0    # Seconds per individual HTTP request


def _clean_key(value: Optional[str]) -> Optional[str]:
    """Treat empty values and copied placeholders (YOUR_..._KEY) as unset."""
    if not value:
        return None
    value = value.strip()
    if not value or value.upper().startswith("YOUR_"):
        return None
    return value


def _float(environ: Mapping[str, str], name: str, default: float) -> float:
    raw = environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning(f"{name}={raw!r} is not a number, using {default}")
        return default
    if value <= 0:
        logger.warning(f"{name} must be positive, using {default}")
        return default
    return value


def _int(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return max(0, int(raw))
    except ValueError:
        logger.warning(f"{name}={raw!r} is not an integer, using {default}")
        return default


@dataclass(frozen=True)
class Settings:
    tmdb_api_key: Optional[str] = None
    google_books_api_key: Optional[str] = None
    dtdd_api_key: Optional[str] = None
    source_timeout: float = DEFAULT_SOURCE_TIMEOUT
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    http_retries: int = 0
    allowed_origins: tuple[str, ...] = field(default=DEFAULT_ALLOWED_ORIGINS)
    content_db_path: Optional[str] = None
    log_level: str = "INFO"


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Build Settings from environ (defaults to os.environ)."""
    if environ is None:
        environ = os.environ

    origins = environ.get("ALLOWED_ORIGINS", "").strip()
    if origins:
        allowed_origins = tuple(o.strip() for o in origins.split(",") if o.strip())
    else:
        allowed_origins = DEFAULT_ALLOWED_ORIGINS

    return Settings(
        tmdb_api_key=_clean_key(environ.get("TMDB_API_KEY")),
        google_books_api_key=_clean_key(environ.get("GOOGLE_BOOKS_API_KEY")),
        dtdd_api_key=_clean_key(environ.get("DOESTHEDOGDIE_API_KEY")),
        source_timeout=_float(environ, "SOURCE_TIMEOUT", DEFAULT_SOURCE_TIMEOUT),
        http_timeout=_float(environ, "HTTP_TIMEOUT", DEFAULT_HTTP_TIMEOUT),
        http_retries=_int(environ, "HTTP_RETRIES", 0),
        allowed_origins=allowed_origins,
        content_db_path=environ.get("CONTENT_DB_PATH") or None,
        log_level=(environ.get("LOG_LEVEL") or "INFO").strip().upper(),
    )
