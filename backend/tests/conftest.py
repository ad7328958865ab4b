# backend/tests/conftest.py
from __future__ import annotations

import pytest

from backend.app.schemas import (
    GlobalImpactMetrics,
    OrganizationImpactMetrics,
    ProjectImpactMetrics,
)
from backend.tests.fakes import (
    FakeCache,
    FakeRepository,
    make_global_metrics,
    make_org_metrics,
    make_project_metrics,
)

# ---------- fixtures ----------


@pytest.fixture
def global_metrics() -> GlobalImpactMetrics:
    return make_global_metrics()


@pytest.fixture
def org_metrics() -> OrganizationImpactMetrics:
    return make_org_metrics()


@pytest.fixture
def project_metrics() -> ProjectImpactMetrics:
    return make_project_metrics()


@pytest.fixture
def repo(
    global_metrics: GlobalImpactMetrics,
    org_metrics: OrganizationImpactMetrics,
    project_metrics: ProjectImpactMetrics,
) -> FakeRepository:
    return FakeRepository(
        global_metrics=global_metrics,
        organizations={org_metrics.organization_id: org_metrics},
        projects={project_metrics.project_id: project_metrics},
    )


@pytest.fixture
def cache() -> FakeCache:
    return FakeCache()
