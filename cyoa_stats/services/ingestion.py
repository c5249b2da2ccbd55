"""
Ingestion Pipeline — validate, hash and store one beacon.

    visitor ip ─► uid
    data ─► validate ─► normalize ─► data_hash ─► INSERT … ON CONFLICT DO NOTHING

Replays of the same canonical payload for the same project are absorbed by
the ``(project_id, data_hash)`` unique constraint. The caller gets the same
``Accepted`` result whether a row was written or not, and two concurrent
identical submissions race safely at the store without any app-side lock.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import bindparam, text

from cyoa_stats.errors import MissingVisitorIdentity
from cyoa_stats.models.log_entry import LogEntry
from cyoa_stats.services.gateway import QueryGateway
from cyoa_stats.services.hasher import Hasher
from cyoa_stats.services.normalizer import classify
from cyoa_stats.services.validator import validate

logger = logging.getLogger(__name__)

# logs.time_on_page is a signed 64-bit column on both backends
MAX_TIME_ON_PAGE = 2**63 - 1

INSERT_LOG_SQL = text(
    """
    INSERT INTO logs (
        project_id, uid, event_type, current_url, referrer, time_on_page,
        event_timestamp, data, data_hash, created_at, log_type
    ) VALUES (
        :project_id, :uid, :event_type, :current_url, :referrer, :time_on_page,
        :event_timestamp, :data, :data_hash, :created_at, :log_type
    )
    ON CONFLICT (project_id, data_hash) DO NOTHING
    """
).bindparams(bindparam("created_at", type_=LogEntry.__table__.c.created_at.type))


@dataclass(frozen=True)
class Accepted:
    project_id: str
    data_hash: str


def _time_on_page(value: Any) -> int:
    """Milliseconds on page; absent or unusable values count as 0."""
    if value is None or isinstance(value, bool):
        return 0
    try:
        ms = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return 0
    return min(max(ms, 0), MAX_TIME_ON_PAGE)


def _optional_text(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def extract_columns(payload: dict) -> dict:
    """Pull the reporting columns out of a validated payload."""
    return {
        "event_type": str(payload["eventType"]),
        "current_url": str(payload["currentURL"]),
        "referrer": _optional_text(payload.get("referrer")),
        "time_on_page": _time_on_page(payload.get("timeOnPage")),
        "event_timestamp": str(payload["timestamp"]),
    }


class IngestionPipeline:
    def __init__(self, gateway: QueryGateway, hasher: Hasher):
        self.gateway = gateway
        self.hasher = hasher

    async def ingest(
        self,
        project_id: str | None,
        visitor_ip: str | None,
        data: Any,
        size_limit: int,
        log_type: str = "log",
    ) -> Accepted:
        if not visitor_ip:
            raise MissingVisitorIdentity()

        uid = await self.hasher.hash(str(visitor_ip))

        validated = validate(project_id, classify(data), size_limit)
        data_hash = await self.hasher.hash(validated.canonical)

        await self.gateway.execute(
            INSERT_LOG_SQL,
            {
                "project_id": validated.project_id,
                "uid": uid,
                **extract_columns(validated.payload),
                "data": validated.canonical,
                "data_hash": data_hash,
                "created_at": datetime.now(timezone.utc),
                "log_type": log_type,
            },
        )

        logger.info(
            "📥 Beacon accepted for %s (uid %s…, hash %s…, %s)",
            validated.project_id, uid[:8], data_hash[:8], log_type,
        )
        return Accepted(project_id=validated.project_id, data_hash=data_hash)
