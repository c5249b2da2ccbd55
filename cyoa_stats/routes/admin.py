"""
CYOA Stats — Admin listing routes.

Unauthenticated; mounted only when ``ADMIN_ENABLED`` is set (404 otherwise).
"""

import json
import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from cyoa_stats.deps import require_admin
from cyoa_stats.schemas import (
    CorrelationItem,
    CorrelationResponse,
    LogListResponse,
    ProjectListResponse,
    ProjectSummary,
)
from cyoa_stats.services.correlation import (
    DEFAULT_METRIC,
    SORT_METRICS,
    choice_correlations,
    sort_correlations,
)
from cyoa_stats.services.gateway import QueryGateway, get_gateway
from cyoa_stats.services.reporting import logs_for_project, project_overview

logger = logging.getLogger(__name__)
admin_router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


@admin_router.get("/projects", response_model=ProjectListResponse)
async def list_projects(gateway: QueryGateway = Depends(get_gateway)):
    """Every project with the latest URL it logged from."""
    rows = await project_overview(gateway)
    return ProjectListResponse(
        projects=[ProjectSummary(**row) for row in rows],
        total=len(rows),
    )


@admin_router.get("/logs", response_model=LogListResponse)
async def project_logs(
    project_id: str | None = Query(None),
    gateway: QueryGateway = Depends(get_gateway),
):
    if not project_id:
        raise HTTPException(status_code=400, detail="Bad Request: Missing project_id")
    rows = await logs_for_project(gateway, project_id)
    return LogListResponse(results=rows, total=len(rows))


@admin_router.get("/correlations", response_model=CorrelationResponse)
async def project_correlations(
    project_id: str | None = Query(None),
    sort: str = Query(DEFAULT_METRIC, description=", ".join(SORT_METRICS)),
    limit: int = Query(50, ge=1, le=500),
    gateway: QueryGateway = Depends(get_gateway),
):
    """Pairs of choices most often selected together."""
    if not project_id:
        raise HTTPException(status_code=400, detail="Bad Request: Missing project_id")
    if sort not in SORT_METRICS:
        raise HTTPException(status_code=400, detail=f"Unknown sort metric: {sort}")

    payloads = []
    for row in await logs_for_project(gateway, project_id):
        try:
            payloads.append(json.loads(row["data"]))
        except ValueError:
            logger.warning("Skipping unparseable log row %s", row["id"])

    ranked = sort_correlations(choice_correlations(payloads), sort)[:limit]
    return CorrelationResponse(
        project_id=project_id,
        sort=sort,
        sessions=len(payloads),
        correlations=[CorrelationItem(**c.to_dict()) for c in ranked],
    )
