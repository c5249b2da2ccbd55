"""
CYOA Stats — Beacon ingestion and owner log download.

- POST /log      JSON body (or query string) with projectId + data
- GET  /log      Bearer secret → every row of the owner's project
- GET  /log-csp  query-string beacon for pages whose CSP blocks fetch bodies
"""

import json
import logging
from typing import Any

from fastapi import APIRouter, Depends, Header, Request, Response
from fastapi.responses import PlainTextResponse

from cyoa_stats.config import settings
from cyoa_stats.cors import NO_STORE_HEADERS, cors_headers, preflight
from cyoa_stats.deps import client_ip, get_hasher, get_pipeline
from cyoa_stats.errors import MalformedJSON
from cyoa_stats.schemas import LogListResponse
from cyoa_stats.services.gateway import QueryGateway, get_gateway
from cyoa_stats.services.hasher import Hasher
from cyoa_stats.services.ingestion import IngestionPipeline
from cyoa_stats.services.registration import authenticate
from cyoa_stats.services.reporting import logs_for_project

logger = logging.getLogger(__name__)
log_router = APIRouter(tags=["logs"])

CREATED = "Log entry created"


async def _read_submission(request: Request) -> tuple[Any, Any]:
    """Collect ``(project_id, data)`` from the query string and JSON body."""
    fields: dict[str, Any] = dict(request.query_params)

    raw = await request.body()
    if raw.strip():
        try:
            body = json.loads(raw)
        except ValueError:
            raise MalformedJSON("Invalid JSON format: request body")
        if not isinstance(body, dict):
            raise MalformedJSON("Invalid JSON format: request body must be an object")
        fields.update(body)

    project_id = fields.get("projectId") or fields.get("project_id")
    return project_id, fields.get("data")


# ── /log ────────────────────────────────────────────────

@log_router.options("/log", include_in_schema=False)
async def log_preflight(request: Request):
    return preflight(request, "GET, POST, OPTIONS", "Content-Type, Authorization")


@log_router.post("/log", status_code=201, response_class=PlainTextResponse)
async def submit_log(
    request: Request,
    pipeline: IngestionPipeline = Depends(get_pipeline),
):
    project_id, data = await _read_submission(request)
    await pipeline.ingest(
        project_id,
        client_ip(request),
        data,
        settings.log_max_bytes,
        log_type="log",
    )
    return PlainTextResponse(CREATED, status_code=201, headers=cors_headers(request))


@log_router.get("/log", response_model=LogListResponse)
async def download_logs(
    request: Request,
    response: Response,
    authorization: str | None = Header(None),
    gateway: QueryGateway = Depends(get_gateway),
    hasher: Hasher = Depends(get_hasher),
):
    """All rows for the project owning the bearer secret."""
    project_id = await authenticate(gateway, hasher, authorization)
    rows = await logs_for_project(gateway, project_id)

    response.headers.update(cors_headers(request))
    return LogListResponse(results=rows, total=len(rows))


# ── /log-csp ────────────────────────────────────────────

@log_router.options("/log-csp", include_in_schema=False)
async def log_csp_preflight(request: Request):
    return preflight(request, "GET, OPTIONS")


@log_router.get("/log-csp", status_code=201, response_class=PlainTextResponse)
async def submit_log_csp(
    request: Request,
    pipeline: IngestionPipeline = Depends(get_pipeline),
):
    await pipeline.ingest(
        request.query_params.get("projectId") or request.query_params.get("project_id"),
        client_ip(request),
        request.query_params.get("data"),
        settings.log_csp_max_bytes,
        log_type="csp",
    )
    return PlainTextResponse(
        CREATED,
        status_code=201,
        headers={**cors_headers(request), **NO_STORE_HEADERS},
    )
