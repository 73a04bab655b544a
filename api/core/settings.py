"""
Environment-driven settings shared by several feature packages.

Feature-specific knobs (JWT secret, token lifetimes) stay next to the code
that uses them, e.g. `auth/security.py`.
"""

from __future__ import annotations

import os
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

DEFAULT_CORS_ORIGINS = (
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:5173",
    "http://127.0.0.1:5173",
)


def env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def env_flag(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name, "").strip().lower()
    if not raw:
        return default
    return raw in {"1", "true", "yes", "on"}


def public_base_url() -> str:
    """
    Origin used in verification and password-reset links.

    Empty means "use the origin of the incoming request".
    """
    return os.environ.get("PUBLIC_BASE_URL", "").strip().rstrip("/")


def display_timezone() -> ZoneInfo:
    name = os.environ.get("DISPLAY_TIMEZONE", "").strip() or "Asia/Jakarta"
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return ZoneInfo("UTC")


def cors_origins() -> list[str]:
    raw = os.environ.get("CORS_ORIGINS", "").strip()
    if not raw:
        return list(DEFAULT_CORS_ORIGINS)
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


def log_level() -> str:
    return os.environ.get("LOG_LEVEL", "").strip().upper() or "INFO"
