"""
CYOA Stats — Project registration.
"""

import logging

from fastapi import APIRouter, Depends, Query

from cyoa_stats.deps import get_hasher
from cyoa_stats.schemas import RegistrationResponse
from cyoa_stats.services.email_service import send_email
from cyoa_stats.services.gateway import QueryGateway, get_gateway
from cyoa_stats.services.hasher import Hasher
from cyoa_stats.services.registration import register_project

logger = logging.getLogger(__name__)
registration_router = APIRouter(tags=["registration"])


@registration_router.get("/registration", response_model=RegistrationResponse)
async def register(
    email: str | None = Query(None, description="Optional address to mail the key to"),
    gateway: QueryGateway = Depends(get_gateway),
    hasher: Hasher = Depends(get_hasher),
):
    """Issue a new project id + secret key. The key is shown only once."""
    registration = await register_project(gateway, hasher, email=email, mailer=send_email)
    return RegistrationResponse(
        project_id=registration.project_id,
        secret_key=registration.secret_key,
        email=registration.email,
        email_sent=registration.email_sent,
    )
