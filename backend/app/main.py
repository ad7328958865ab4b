import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError

from .config import settings
from .db import init_db
from .deps import get_metrics_service
from .metrics_service import MetricsCacheService
from .schemas import GlobalImpactMetrics, OrganizationImpactMetrics, ProjectImpactMetrics

logger = logging.getLogger(__name__)

METRICS_ERROR = "Error retrieving impact metrics"


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    logging.basicConfig(level=settings.log_level)
    init_db()
    yield


app = FastAPI(title="Impact Metrics API", lifespan=lifespan)


class HealthResponse(BaseModel):
    ok: bool


@app.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    return HealthResponse(ok=True)


@app.get("/metrics/impact", response_model=GlobalImpactMetrics)
def global_metrics(
    service: MetricsCacheService = Depends(get_metrics_service),
) -> GlobalImpactMetrics:
    try:
        return service.get_global_metrics()
    except SQLAlchemyError as e:
        logger.exception("Failed to load global metrics")
        raise HTTPException(status_code=500, detail=METRICS_ERROR) from e


@app.get(
    "/metrics/organizations/{organization_id}/impact",
    response_model=OrganizationImpactMetrics,
)
def organization_metrics(
    organization_id: str,
    service: MetricsCacheService = Depends(get_metrics_service),
) -> OrganizationImpactMetrics:
    try:
        metrics = service.get_organization_metrics(organization_id)
    except SQLAlchemyError as e:
        logger.exception("Failed to load metrics for organization %s", organization_id)
        raise HTTPException(status_code=500, detail=METRICS_ERROR) from e

    if metrics is None:
        raise HTTPException(status_code=404, detail="Organization not found")
    return metrics


@app.get("/metrics/projects/{project_id}/impact", response_model=ProjectImpactMetrics)
def project_metrics(
    project_id: str,
    service: MetricsCacheService = Depends(get_metrics_service),
) -> ProjectImpactMetrics:
    try:
        metrics = service.get_project_metrics(project_id)
    except SQLAlchemyError as e:
        logger.exception("Failed to load metrics for project %s", project_id)
        raise HTTPException(status_code=500, detail=METRICS_ERROR) from e

    if metrics is None:
        raise HTTPException(status_code=404, detail="Project not found")
    return metrics
