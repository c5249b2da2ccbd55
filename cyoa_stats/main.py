"""
FastAPI Application — entry point.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse

from cyoa_stats.config import settings
from cyoa_stats.cors import NO_STORE_HEADERS, cors_headers
from cyoa_stats.database import init_db, close_db
from cyoa_stats.errors import IngestError
from cyoa_stats.routes import VERSION, router
from cyoa_stats.services.hasher import Hasher

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown hook."""
    logger.info("🚀 Starting CYOA Stats API v%s", VERSION)
    app.state.hasher.ensure_configured()
    await init_db()
    logger.info("✅ Database ready")

    if settings.admin_enabled:
        logger.warning("⚠️ Admin routes are enabled and unauthenticated")

    yield

    await close_db()
    logger.info("👋 Shutdown complete")


app = FastAPI(
    title="CYOA Stats API",
    description="Analytics beacons and aggregate statistics for interactive CYOA projects.",
    version=VERSION,
    lifespan=lifespan,
)

# One digest service per process, handed to routes through a dependency
app.state.hasher = Hasher(settings.pepper)


@app.exception_handler(IngestError)
async def ingest_error_handler(request: Request, exc: IngestError):
    headers = cors_headers(request)
    if request.url.path.endswith("/log-csp"):
        headers.update(NO_STORE_HEADERS)
    if exc.status_code >= 500:
        logger.error("❌ %s %s failed: %s", request.method, request.url.path, exc.reason)
    else:
        logger.info("Rejected %s %s (%d): %s", request.method, request.url.path, exc.status_code, exc.reason)
    return PlainTextResponse(exc.reason, status_code=exc.status_code, headers=headers)


app.include_router(router, prefix="/api")


@app.get("/", include_in_schema=False)
async def root():
    return {
        "service": "CYOA Stats API",
        "version": VERSION,
        "docs": "/docs",
    }
