# backend/tests/test_metrics_service.py
from __future__ import annotations

import json
import logging

import pytest

from backend.app.metrics_service import (
    DEFAULT_CACHE_TTL_SECONDS,
    GLOBAL_METRICS_KEY,
    MetricsCacheService,
    encode_metrics,
    organization_metrics_key,
    project_metrics_key,
)
from backend.app.schemas import (
    GlobalImpactMetrics,
    OrganizationImpactMetrics,
    ProjectImpactMetrics,
)
from backend.tests.fakes import (
    BrokenCache,
    FakeCache,
    FakeRepository,
    make_global_metrics,
    make_org_metrics,
)

# ---------- keys ----------


def test_cache_keys() -> None:
    """Keys encode both the scope kind and its id."""
    assert GLOBAL_METRICS_KEY == "global:metrics"
    assert organization_metrics_key("org-1") == "organization:org-1:metrics"
    assert project_metrics_key("p-9") == "project:p-9:metrics"


def test_default_ttl_is_one_day() -> None:
    assert DEFAULT_CACHE_TTL_SECONDS == 86400


# ---------- no cache attached ----------


def test_global_without_cache_goes_to_repository(
    repo: FakeRepository, global_metrics: GlobalImpactMetrics
) -> None:
    """Every read hits the repository exactly once when caching is disabled."""
    svc = MetricsCacheService(repo, cache=None)

    assert svc.get_global_metrics() == global_metrics
    assert svc.get_global_metrics() == global_metrics
    assert repo.calls == [("global", None), ("global", None)]
    assert svc.caching_enabled is False


def test_org_and_project_without_cache(
    repo: FakeRepository,
    org_metrics: OrganizationImpactMetrics,
    project_metrics: ProjectImpactMetrics,
) -> None:
    svc = MetricsCacheService(repo)

    assert svc.get_organization_metrics("org-123") == org_metrics
    assert svc.get_project_metrics("project-123") == project_metrics
    assert repo.calls == [("organization", "org-123"), ("project", "project-123")]


def test_not_found_without_cache(repo: FakeRepository) -> None:
    """Unknown ids come back as None, not as a zeroed snapshot."""
    svc = MetricsCacheService(repo)

    assert svc.get_organization_metrics("non-existent") is None
    assert svc.get_project_metrics("non-existent") is None


# ---------- cold cache ----------


def test_cold_cache_populates_global_entry(
    repo: FakeRepository, cache: FakeCache, global_metrics: GlobalImpactMetrics
) -> None:
    """A miss returns the fresh snapshot and stores it under global:metrics for a day."""
    svc = MetricsCacheService(repo, cache=cache)

    assert svc.get_global_metrics() == global_metrics
    assert cache.gets == ["global:metrics"]
    assert cache.sets == [("global:metrics", encode_metrics(global_metrics), 86400)]

    stored = json.loads(cache.store["global:metrics"])
    assert stored["totalProjects"] == 10
    assert stored["environmentalImpact"] == {
        "co2Saved": 100.0,
        "treesPlanted": 50.0,
        "wasteReduced": 200.0,
    }


def test_second_read_is_served_from_cache(repo: FakeRepository, cache: FakeCache) -> None:
    """Two reads with a cold cache cost one repository call, not two."""
    svc = MetricsCacheService(repo, cache=cache)

    first = svc.get_global_metrics()
    second = svc.get_global_metrics()

    assert first == second
    assert repo.calls == [("global", None)]


def test_org_and_project_cold_cache(
    repo: FakeRepository,
    cache: FakeCache,
    org_metrics: OrganizationImpactMetrics,
    project_metrics: ProjectImpactMetrics,
) -> None:
    svc = MetricsCacheService(repo, cache=cache)

    assert svc.get_organization_metrics("org-123") == org_metrics
    assert svc.get_project_metrics("project-123") == project_metrics
    assert svc.get_organization_metrics("org-123") == org_metrics
    assert svc.get_project_metrics("project-123") == project_metrics

    assert repo.calls == [("organization", "org-123"), ("project", "project-123")]
    assert set(cache.store) == {"organization:org-123:metrics", "project:project-123:metrics"}


def test_custom_ttl_applies_to_every_scope(repo: FakeRepository, cache: FakeCache) -> None:
    svc = MetricsCacheService(repo, cache=cache, ttl_seconds=60)

    svc.get_global_metrics()
    svc.get_organization_metrics("org-123")
    svc.get_project_metrics("project-123")

    assert set(cache.ttls.values()) == {60}


# ---------- warm cache ----------


def test_warm_cache_skips_repository(
    repo: FakeRepository, cache: FakeCache, global_metrics: GlobalImpactMetrics
) -> None:
    """A cached JSON snapshot is decoded and returned; the repository is never asked."""
    cache.store["global:metrics"] = json.dumps(
        global_metrics.model_dump(mode="json", by_alias=True)
    ).encode()
    svc = MetricsCacheService(repo, cache=cache)

    assert svc.get_global_metrics() == global_metrics
    assert cache.gets == ["global:metrics"]
    assert repo.calls == []
    assert cache.sets == []


def test_warm_cache_org_and_project(
    cache: FakeCache,
    org_metrics: OrganizationImpactMetrics,
    project_metrics: ProjectImpactMetrics,
) -> None:
    cache.store[organization_metrics_key("org-123")] = encode_metrics(org_metrics)
    cache.store[project_metrics_key("project-123")] = encode_metrics(project_metrics)
    repo = FakeRepository()
    svc = MetricsCacheService(repo, cache=cache)

    assert svc.get_organization_metrics("org-123") == org_metrics
    assert svc.get_project_metrics("project-123") == project_metrics
    assert repo.calls == []


# ---------- absence ----------


def test_absence_is_not_cached(cache: FakeCache) -> None:
    """A missing organization shows up as soon as it exists; no negative caching."""
    repo = FakeRepository()
    svc = MetricsCacheService(repo, cache=cache)

    assert svc.get_organization_metrics("non-existent") is None
    assert svc.get_project_metrics("non-existent") is None
    assert cache.sets == []

    repo.organizations["non-existent"] = make_org_metrics("non-existent")
    found = svc.get_organization_metrics("non-existent")

    assert found is not None
    assert found.organization_id == "non-existent"
    assert repo.calls.count(("organization", "non-existent")) == 2


# ---------- cache faults ----------


def test_cache_outage_falls_back_to_repository(
    repo: FakeRepository,
    global_metrics: GlobalImpactMetrics,
    org_metrics: OrganizationImpactMetrics,
    project_metrics: ProjectImpactMetrics,
    caplog: pytest.LogCaptureFixture,
) -> None:
    """Cache errors on get and set never fail the read."""
    cache = BrokenCache()
    svc = MetricsCacheService(repo, cache=cache)

    with caplog.at_level(logging.WARNING, logger="backend.app.metrics_service"):
        assert svc.get_global_metrics() == global_metrics
        assert svc.get_organization_metrics("org-123") == org_metrics
        assert svc.get_project_metrics("project-123") == project_metrics

    assert len(repo.calls) == 3
    assert len(cache.sets) == 3  # population was still attempted
    assert "Cache read failed for global:metrics" in caplog.text
    assert "Cache write failed for global:metrics" in caplog.text


@pytest.mark.parametrize(
    "raw",
    [
        b"not json",
        b'{"totalProjects": 1}',  # half-populated
        b'{"organizationId": "o", "organizationName": "x"}',  # wrong shape
        json.dumps(
            {**make_global_metrics().model_dump(mode="json", by_alias=True), "totalVolunteers": -1}
        ).encode(),
        json.dumps(
            {**make_global_metrics().model_dump(mode="json", by_alias=True), "totalHoursVolunteered": None}
        ).encode(),
    ],
)
def test_malformed_entry_is_a_miss(
    raw: bytes, repo: FakeRepository, cache: FakeCache, global_metrics: GlobalImpactMetrics
) -> None:
    """Undecodable cached bytes are replaced by a fresh snapshot."""
    cache.store["global:metrics"] = raw
    svc = MetricsCacheService(repo, cache=cache)

    assert svc.get_global_metrics() == global_metrics
    assert repo.calls == [("global", None)]
    assert cache.store["global:metrics"] == encode_metrics(global_metrics)


def test_org_entry_is_not_read_as_project(
    cache: FakeCache, org_metrics: OrganizationImpactMetrics, project_metrics: ProjectImpactMetrics
) -> None:
    cache.store[project_metrics_key("project-123")] = encode_metrics(org_metrics)
    repo = FakeRepository(projects={"project-123": project_metrics})
    svc = MetricsCacheService(repo, cache=cache)

    assert svc.get_project_metrics("project-123") == project_metrics
    assert repo.calls == [("project", "project-123")]


def test_repository_error_propagates_on_read(cache: FakeCache) -> None:
    err = ConnectionError("Database error")
    svc = MetricsCacheService(FakeRepository(error=err), cache=cache)

    with pytest.raises(ConnectionError) as exc_info:
        svc.get_organization_metrics("org-123")
    assert exc_info.value is err
    assert cache.sets == []


# ---------- refresh ----------


def test_refresh_overwrites_existing_entry(
    repo: FakeRepository, cache: FakeCache, global_metrics: GlobalImpactMetrics
) -> None:
    """Refresh always recomputes, even with a valid entry, and readers see the new value."""
    stale = make_global_metrics(totalProjects=1)
    cache.store["global:metrics"] = encode_metrics(stale)
    svc = MetricsCacheService(repo, cache=cache)

    svc.refresh_metrics_cache()

    assert repo.calls == [("global", None)]
    assert cache.sets == [("global:metrics", encode_metrics(global_metrics), 86400)]

    observed = svc.get_global_metrics()
    assert observed.total_projects == 10
    assert repo.calls == [("global", None)]


def test_refresh_repository_failure_writes_nothing(cache: FakeCache) -> None:
    """A failing repository fails the refresh with the same error; the cache is untouched."""
    cache.store["global:metrics"] = encode_metrics(make_global_metrics())
    before = dict(cache.store)
    svc = MetricsCacheService(FakeRepository(error=RuntimeError("Database error")), cache=cache)

    with pytest.raises(RuntimeError, match="Database error"):
        svc.refresh_metrics_cache()

    assert cache.sets == []
    assert cache.store == before


def test_refresh_without_cache_still_recomputes(repo: FakeRepository) -> None:
    svc = MetricsCacheService(repo, cache=None)
    svc.refresh_metrics_cache()
    assert repo.calls == [("global", None)]


def test_refresh_cache_write_failure_is_logged_not_raised(
    repo: FakeRepository, caplog: pytest.LogCaptureFixture
) -> None:
    svc = MetricsCacheService(repo, cache=BrokenCache())

    with caplog.at_level(logging.ERROR, logger="backend.app.metrics_service"):
        svc.refresh_metrics_cache()

    assert "could not be refreshed" in caplog.text
