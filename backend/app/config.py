# backend/app/config.py
from __future__ import annotations
from pydantic import BaseModel

import os
from typing import Final
from dotenv import load_dotenv

# Load .env for local dev (no-op if not present)
load_dotenv()

ONE_DAY_SECONDS: Final[int] = 24 * 60 * 60


def _optional_env(name: str) -> str | None:
    """Return the variable's value, treating unset and empty the same."""
    value = os.getenv(name)
    return value or None


class Settings(BaseModel):
    # Database URL defaults to SQLite if not set
    database_url: Final[str] = os.getenv("DATABASE_URL", "sqlite:///./local.db")

    # No REDIS_URL means the service runs uncached
    redis_url: Final[str | None] = _optional_env("REDIS_URL")
    redis_socket_timeout: Final[float] = float(os.getenv("REDIS_SOCKET_TIMEOUT", "2.0"))

    metrics_cache_ttl_seconds: Final[int] = int(
        os.getenv("METRICS_CACHE_TTL_SECONDS", str(ONE_DAY_SECONDS))
    )

    log_level: Final[str] = os.getenv("LOG_LEVEL", "INFO").upper()


settings = Settings()
