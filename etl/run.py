# etl/run.py
# Scheduled job (cron): recompute global impact metrics and rewrite the cache entry.
from __future__ import annotations

import datetime as dt
import logging
import sys

from backend.app.config import settings
from backend.app.deps import get_metrics_service
from backend.app.metrics_service import MetricsCacheService


def run_once(service: MetricsCacheService | None = None) -> None:
    """Refresh the global metrics cache once; repository errors propagate."""
    if service is None:
        service = get_metrics_service()
    start = dt.datetime.now(dt.timezone.utc)

    service.refresh_metrics_cache()

    dur = (dt.datetime.now(dt.timezone.utc) - start).total_seconds()
    print(f"[etl] refreshed global metrics cached={service.caching_enabled} in {dur:.2f}s")


def main() -> int:
    logging.basicConfig(level=settings.log_level)
    try:
        run_once()
    except Exception:
        logging.getLogger("etl").exception("metrics refresh failed")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
