"""
CYOA Stats — Public aggregate counters (cached by clients).
"""

from fastapi import APIRouter, Depends, Query, Response

from cyoa_stats.config import settings
from cyoa_stats.schemas import (
    BuildCountResponse,
    ProjectCountResponse,
    TotalTimeResponse,
    VisitorCountResponse,
)
from cyoa_stats.services import reporting
from cyoa_stats.services.gateway import QueryGateway, get_gateway

count_router = APIRouter(prefix="/count", tags=["count"])


def _cacheable(response: Response) -> None:
    response.headers["Cache-Control"] = f"public, max-age={settings.count_cache_seconds}"


@count_router.get("", response_model=TotalTimeResponse)
async def total_time(response: Response, gateway: QueryGateway = Depends(get_gateway)):
    _cacheable(response)
    return TotalTimeResponse(adjusted_total_time=await reporting.adjusted_total_time(gateway))


@count_router.get("/visitors", response_model=VisitorCountResponse)
async def visitors(response: Response, gateway: QueryGateway = Depends(get_gateway)):
    _cacheable(response)
    return VisitorCountResponse(visitor_count=await reporting.visitor_count(gateway))


@count_router.get("/projects", response_model=ProjectCountResponse)
async def projects(response: Response, gateway: QueryGateway = Depends(get_gateway)):
    _cacheable(response)
    return ProjectCountResponse(project_count=await reporting.project_count(gateway))


@count_router.get("/builds", response_model=BuildCountResponse)
async def builds(
    response: Response,
    project_id: str | None = Query(None, description="Limit to one project"),
    gateway: QueryGateway = Depends(get_gateway),
):
    _cacheable(response)
    return BuildCountResponse(build_count=await reporting.build_count(gateway, project_id))
