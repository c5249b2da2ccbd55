"""
FastAPI dependencies shared by the routers.
"""

from fastapi import Depends, HTTPException, Request

from cyoa_stats.config import settings
from cyoa_stats.services.gateway import QueryGateway, get_gateway
from cyoa_stats.services.hasher import Hasher
from cyoa_stats.services.ingestion import IngestionPipeline


def get_hasher(request: Request) -> Hasher:
    """The per-process hasher built in ``main.py``."""
    return request.app.state.hasher


def get_pipeline(
    gateway: QueryGateway = Depends(get_gateway),
    hasher: Hasher = Depends(get_hasher),
) -> IngestionPipeline:
    return IngestionPipeline(gateway, hasher)


def client_ip(request: Request) -> str | None:
    """Visitor IP as reported by the edge proxy; never the socket peer."""
    value = request.headers.get(settings.client_ip_header, "").strip()
    return value or None


def require_admin() -> None:
    if not settings.admin_enabled:
        raise HTTPException(status_code=404, detail="Not Found")
