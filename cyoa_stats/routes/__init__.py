"""
API Routes — health plus the beacon, count, registration and admin routers.
"""

from datetime import datetime, timezone

from fastapi import APIRouter

from cyoa_stats.routes.admin import admin_router
from cyoa_stats.routes.counts import count_router
from cyoa_stats.routes.logs import log_router
from cyoa_stats.routes.registration import registration_router
from cyoa_stats.schemas import HealthResponse

VERSION = "1.0.0"

router = APIRouter()


@router.get("/health", response_model=HealthResponse, tags=["system"])
async def health():
    return HealthResponse(
        status="ok",
        timestamp=datetime.now(timezone.utc).isoformat(),
        version=VERSION,
    )


router.include_router(log_router)
router.include_router(count_router)
router.include_router(registration_router)
router.include_router(admin_router)
