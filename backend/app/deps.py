from functools import lru_cache

from .cache import create_cache_client
from .config import settings
from .db import SessionLocal
from .metrics_repository import MetricsRepository
from .metrics_service import MetricsCacheService


@lru_cache(maxsize=1)
def get_metrics_service() -> MetricsCacheService:
    """Process-wide service; the redis pool and session factory are shared by all callers."""
    return MetricsCacheService(
        repository=MetricsRepository(SessionLocal),
        cache=create_cache_client(settings.redis_url, timeout=settings.redis_socket_timeout),
        ttl_seconds=settings.metrics_cache_ttl_seconds,
    )
