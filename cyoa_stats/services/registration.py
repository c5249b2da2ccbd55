"""
Project registration and bearer-secret lookup.

A registration issues a fresh ``project_id`` plus a random secret key. Only
``hash(secret)`` is persisted; the raw key is returned once (and optionally
mailed to the owner). ``authenticate`` maps a presented secret back to its
project by hashing it the same way.
"""

import asyncio
import logging
import secrets
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Awaitable, Callable

import dns.exception
import dns.resolver
from email_validator import EmailNotValidError, validate_email
from sqlalchemy import insert, select

from cyoa_stats.config import settings
from cyoa_stats.errors import RegistrationRejected, Unauthorized
from cyoa_stats.models.project import Project
from cyoa_stats.services.email_service import build_registration_email, send_email
from cyoa_stats.services.gateway import QueryGateway
from cyoa_stats.services.hasher import Hasher

logger = logging.getLogger(__name__)

DISPOSABLE_DOMAINS = {
    "mailinator.com", "guerrillamail.com", "10minutemail.com",
    "tempmail.com", "throwaway.email", "yopmail.com",
    "trashmail.com", "sharklasers.com", "grr.la",
    "temp-mail.org", "dispostable.com", "maildrop.cc",
}

Mailer = Callable[..., Awaitable[dict]]


@dataclass(frozen=True)
class Registration:
    project_id: str
    secret_key: str
    email: str | None = None
    email_sent: bool = False


def is_disposable(email: str) -> bool:
    """Check if email is from a disposable provider."""
    domain = email.split("@")[-1].lower()
    return domain in DISPOSABLE_DOMAINS


def is_blocklisted(email: str) -> bool:
    address = email.lower()
    domain = address.split("@")[-1]
    blocked = settings.blocked_emails
    return address in blocked or domain in blocked


async def has_mx_record(domain: str) -> bool:
    """Resolve MX records for a domain."""
    try:
        loop = asyncio.get_event_loop()
        answers = await loop.run_in_executor(
            None,
            lambda: dns.resolver.resolve(domain, "MX"),
        )
        return len(answers) > 0
    except dns.exception.DNSException as e:
        logger.info("MX lookup failed for %s: %s", domain, e)
        return False


async def check_registration_email(raw: str) -> str:
    """Return the normalized address or raise ``RegistrationRejected``."""
    try:
        email = validate_email(raw, check_deliverability=False).normalized
    except EmailNotValidError as e:
        raise RegistrationRejected(f"Invalid email address: {e}")

    if is_disposable(email):
        raise RegistrationRejected("Disposable email addresses are not accepted")
    if is_blocklisted(email):
        raise RegistrationRejected("Email address not accepted")
    if settings.registration_check_mx and not await has_mx_record(email.split("@")[-1]):
        raise RegistrationRejected("Email domain cannot receive mail")
    return email


async def register_project(
    gateway: QueryGateway,
    hasher: Hasher,
    email: str | None = None,
    mailer: Mailer = send_email,
) -> Registration:
    if email:
        email = await check_registration_email(email)

    project_id = str(uuid.uuid4())
    secret_key = secrets.token_urlsafe(32)

    await gateway.execute(
        insert(Project).values(
            project_id=project_id,
            secret_key_hash=await hasher.hash(secret_key),
            email=email or None,
            created_at=datetime.now(timezone.utc),
        )
    )
    logger.info("🆕 Registered project %s", project_id)

    email_sent = False
    if email:
        subject, text, html = build_registration_email(project_id, secret_key)
        try:
            result = await mailer(to=email, subject=subject, body_text=text, body_html=html)
            email_sent = bool(result.get("success"))
            if not email_sent:
                logger.warning("Registration email for %s not sent: %s", project_id, result.get("message"))
        except Exception as e:
            logger.warning("Failed to send registration email for %s: %s", project_id, e)

    return Registration(
        project_id=project_id,
        secret_key=secret_key,
        email=email or None,
        email_sent=email_sent,
    )


def bearer_secret(authorization: str | None) -> str | None:
    """Extract the secret from an ``Authorization: Bearer …`` header."""
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


async def authenticate(gateway: QueryGateway, hasher: Hasher, authorization: str | None) -> str:
    """Project id owning the presented secret, else ``Unauthorized``."""
    secret = bearer_secret(authorization)
    if not secret:
        raise Unauthorized()

    project_id = await gateway.scalar(
        select(Project.project_id).where(Project.secret_key_hash == await hasher.hash(secret))
    )
    if project_id is None:
        raise Unauthorized()
    return project_id
