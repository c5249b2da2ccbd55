"""
Query Gateway — the only path from services to the database.

Statements are either SQL text with named bind parameters or SQLAlchemy
Core/ORM constructs; values are never interpolated into SQL strings.
"""

import logging
from typing import Any

from fastapi import Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from cyoa_stats.database import get_db
from cyoa_stats.errors import StoreFailure

logger = logging.getLogger(__name__)


class QueryGateway:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def execute(self, statement: Any, params: dict | None = None) -> list[dict]:
        """
        Run one statement and return its rows as dicts.
        Statements that return no rows are committed immediately.
        """
        if isinstance(statement, str):
            statement = text(statement)

        try:
            result = await self.session.execute(statement, params or {})
            if result.returns_rows:
                return [dict(row) for row in result.mappings().all()]
            await self.session.commit()
            return []
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("Store statement failed: %s", e)
            raise StoreFailure(str(e)) from e

    async def scalar(self, statement: Any, params: dict | None = None) -> Any:
        """First column of the first row, or ``None``."""
        rows = await self.execute(statement, params)
        if not rows:
            return None
        return next(iter(rows[0].values()))


async def get_gateway(session: AsyncSession = Depends(get_db)) -> QueryGateway:
    """FastAPI dependency — one gateway per request session."""
    return QueryGateway(session)
