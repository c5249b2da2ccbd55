"""
Aggregation reporters — read-only summary queries over the log store.
"""

import json
import logging

from sqlalchemy import case, distinct, func, select

from cyoa_stats.config import settings
from cyoa_stats.models.log_entry import LogEntry
from cyoa_stats.models.project import Project
from cyoa_stats.services.gateway import QueryGateway

logger = logging.getLogger(__name__)


async def adjusted_total_time(gateway: QueryGateway, cap_ms: int | None = None) -> int:
    """Sum of time on page with each row capped (idle tabs left open for days)."""
    cap = settings.time_on_page_cap_ms if cap_ms is None else cap_ms
    capped = case((LogEntry.time_on_page > cap, cap), else_=LogEntry.time_on_page)
    total = await gateway.scalar(select(func.coalesce(func.sum(capped), 0)))
    return int(total or 0)


async def visitor_count(gateway: QueryGateway) -> int:
    total = await gateway.scalar(select(func.count(distinct(LogEntry.uid))))
    return int(total or 0)


async def project_count(gateway: QueryGateway) -> int:
    total = await gateway.scalar(select(func.count()).select_from(Project))
    return int(total or 0)


async def build_count(gateway: QueryGateway, project_id: str | None = None) -> int:
    """Distinct ``projectHash`` values (one per published build of a CYOA)."""
    stmt = select(LogEntry.data)
    if project_id:
        stmt = stmt.where(LogEntry.project_id == project_id)

    hashes: set[str] = set()
    for row in await gateway.execute(stmt):
        try:
            payload = json.loads(row["data"])
        except (TypeError, ValueError):
            continue
        if isinstance(payload, dict) and payload.get("projectHash") is not None:
            hashes.add(str(payload["projectHash"]))
    return len(hashes)


async def logs_for_project(gateway: QueryGateway, project_id: str) -> list[dict]:
    """Every stored row for one project, oldest first."""
    stmt = (
        select(LogEntry.__table__)
        .where(LogEntry.project_id == project_id)
        .order_by(LogEntry.id.asc())
    )
    return await gateway.execute(stmt)


async def project_overview(gateway: QueryGateway) -> list[dict]:
    """All projects with the most recently logged URL as a sample."""
    sample_url = (
        select(LogEntry.current_url)
        .where(LogEntry.project_id == Project.project_id)
        .order_by(LogEntry.id.desc())
        .limit(1)
        .correlate(Project)
        .scalar_subquery()
    )
    stmt = select(
        Project.project_id,
        Project.created_at,
        sample_url.label("sample_url"),
    ).order_by(Project.created_at.desc())
    return await gateway.execute(stmt)
