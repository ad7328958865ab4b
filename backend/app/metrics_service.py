# backend/app/metrics_service.py
"""Cache-aside access to impact metrics.

The cache is an optimization only: any cache fault (unreachable server,
timeout, undecodable entry) is logged and treated as a miss, so reads fail
only when the repository itself fails.

Key patterns:
    global:metrics
    organization:{organization_id}:metrics
    project:{project_id}:metrics
"""
from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Protocol, TypeVar, cast

from pydantic import BaseModel, ValidationError

from .cache import CacheClient, CacheError
from .config import ONE_DAY_SECONDS
from .schemas import GlobalImpactMetrics, OrganizationImpactMetrics, ProjectImpactMetrics

logger = logging.getLogger(__name__)

GLOBAL_METRICS_KEY = "global:metrics"
DEFAULT_CACHE_TTL_SECONDS = ONE_DAY_SECONDS

M = TypeVar("M", bound=BaseModel)


class MetricsSource(Protocol):
    """What the service needs from the system of record."""

    def get_global_metrics(self) -> GlobalImpactMetrics: ...

    def get_organization_metrics(self, organization_id: str) -> OrganizationImpactMetrics | None: ...

    def get_project_metrics(self, project_id: str) -> ProjectImpactMetrics | None: ...


# ------------------------- keys & serialization -------------------------


def organization_metrics_key(organization_id: str) -> str:
    return f"organization:{organization_id}:metrics"


def project_metrics_key(project_id: str) -> str:
    return f"project:{project_id}:metrics"


def encode_metrics(metrics: BaseModel) -> bytes:
    """Serialize a snapshot to UTF-8 JSON with camelCase field names."""
    return metrics.model_dump_json(by_alias=True).encode("utf-8")


def decode_metrics(model: type[M], raw: bytes | str) -> M:
    """Parse cached JSON back into ``model``.

    Raises:
        pydantic.ValidationError: If ``raw`` is not valid JSON or is not a
            complete ``model`` payload.
    """
    return model.model_validate_json(raw)


# ------------------------- service -------------------------


class MetricsCacheService:
    """Serves impact metrics, from cache when possible.

    Reads are cache-aside: a hit returns the decoded entry without touching
    the repository; a miss computes from the repository and stores the result
    for ``ttl_seconds``. "Not found" results are returned but never cached.
    ``refresh_metrics_cache`` is write-through for the global figure.

    The service holds no per-request state and is safe to share across
    threads.

    Args:
        repository: Source of record for metrics snapshots.
        cache: Optional cache client. None disables caching entirely; reads
            then always go to the repository.
        ttl_seconds: Lifetime of every cache entry written.
    """

    def __init__(
        self,
        repository: MetricsSource,
        cache: CacheClient | None = None,
        ttl_seconds: int = DEFAULT_CACHE_TTL_SECONDS,
    ) -> None:
        self._repository = repository
        self._cache = cache
        self._ttl = ttl_seconds

    @property
    def caching_enabled(self) -> bool:
        return self._cache is not None

    # ------------------------- cache helpers -------------------------

    def _read(self, key: str, model: type[M]) -> M | None:
        """Return the cached snapshot under ``key``; None on miss or any cache fault."""
        if self._cache is None:
            return None

        try:
            raw = self._cache.get(key)
        except CacheError as e:
            logger.warning("Cache read failed for %s, falling back to repository: %s", key, e)
            return None

        if raw is None:
            return None

        try:
            return decode_metrics(model, raw)
        except ValidationError as e:
            logger.warning(
                "Ignoring malformed cache entry %s (%d validation errors)", key, e.error_count()
            )
            return None

    def _write(self, key: str, metrics: BaseModel) -> bool:
        """Store ``metrics`` under ``key``. Returns False if the write failed."""
        if self._cache is None:
            return False

        try:
            self._cache.set(key, encode_metrics(metrics), self._ttl)
        except CacheError as e:
            logger.warning("Cache write failed for %s: %s", key, e)
            return False
        return True

    def _cache_aside(self, key: str, model: type[M], load: Callable[[], M | None]) -> M | None:
        cached = self._read(key, model)
        if cached is not None:
            return cached

        # repository errors propagate as-is
        metrics = load()
        if metrics is not None:
            self._write(key, metrics)
        return metrics

    # ------------------------- Public API -------------------------

    def get_global_metrics(self) -> GlobalImpactMetrics:
        # the repository never reports global metrics as absent
        return cast(
            GlobalImpactMetrics,
            self._cache_aside(
                GLOBAL_METRICS_KEY, GlobalImpactMetrics, self._repository.get_global_metrics
            ),
        )

    def get_organization_metrics(self, organization_id: str) -> OrganizationImpactMetrics | None:
        """Return metrics for one organization, or None if it does not exist."""
        return self._cache_aside(
            organization_metrics_key(organization_id),
            OrganizationImpactMetrics,
            lambda: self._repository.get_organization_metrics(organization_id),
        )

    def get_project_metrics(self, project_id: str) -> ProjectImpactMetrics | None:
        """Return metrics for one project, or None if it does not exist."""
        return self._cache_aside(
            project_metrics_key(project_id),
            ProjectImpactMetrics,
            lambda: self._repository.get_project_metrics(project_id),
        )

    def refresh_metrics_cache(self) -> None:
        """Recompute the global snapshot and overwrite its cache entry.

        Meant for a scheduled job, so the global figure stays warm under low
        traffic. Fails only if the repository fails, in which case nothing is
        written. A failed cache write is logged, not raised.
        """
        metrics = self._repository.get_global_metrics()

        if self._cache is None:
            logger.info("Metrics recomputed; caching disabled, nothing to refresh")
        elif self._write(GLOBAL_METRICS_KEY, metrics):
            logger.info("Metrics cache refreshed successfully")
        else:
            logger.error("Metrics recomputed but the cache could not be refreshed")
