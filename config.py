"""Environment-driven settings.

Stdlib only and no app imports, so every module can read it without cycles.
"""

from __future__ import annotations

import os


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _list_env(name: str, default: str) -> list[str]:
    raw = os.getenv(name) or default
    return [item.strip() for item in raw.split(",") if item.strip()]


ENVIRONMENT: str = os.getenv("EVCONNECT_ENV", "development")

# "memory" or "sqlite"
STORAGE_BACKEND: str = os.getenv("EVCONNECT_STORAGE", "memory").lower()
DB_PATH: str = os.getenv("EVCONNECT_DB_PATH", "evconnect.sqlite3")

if ENVIRONMENT == "production" and not os.getenv("SESSION_SECRET"):
    raise RuntimeError("SESSION_SECRET environment variable is required in production")

SECRET_KEY: str = os.getenv("SESSION_SECRET", "dev-secret-only-for-local-development")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES: int = _int_env("ACCESS_TOKEN_EXPIRE_MINUTES", 60 * 24 * 7)  # 7 days

CORS_ORIGINS: list[str] = _list_env(
    "EVCONNECT_CORS_ORIGINS", "http://localhost:5173,http://localhost:3000"
)

OPEN_CHARGE_MAP_API_KEY: str = os.getenv("OPEN_CHARGE_MAP_API_KEY", "")
OPEN_CHARGE_MAP_URL: str = os.getenv("OPEN_CHARGE_MAP_URL", "https://api.openchargemap.io/v3/poi/")
OPEN_CHARGE_MAP_TIMEOUT: int = _int_env("OPEN_CHARGE_MAP_TIMEOUT", 10)

LOG_LEVEL: str = os.getenv("EVCONNECT_LOG_LEVEL", "INFO").upper()

# Per-category result caps for /api/search
SEARCH_SUGGESTION_LIMIT: int = _int_env("EVCONNECT_SEARCH_SUGGESTION_LIMIT", 5)
SEARCH_RESULT_LIMIT: int = _int_env("EVCONNECT_SEARCH_RESULT_LIMIT", 20)
