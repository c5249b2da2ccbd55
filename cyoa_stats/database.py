"""
CYOA Stats — storage engine and sessions.

Two backends are supported: SQLite through aiosqlite (single host, the
default) and PostgreSQL through asyncpg. Beacon ingestion relies on
``INSERT … ON CONFLICT (project_id, data_hash) DO NOTHING``, which SQLite
only understands from 3.24 on, so that version is checked before any table
is created.
"""

import logging
import sqlite3

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from cyoa_stats.config import settings
from cyoa_stats.errors import ConfigurationError

logger = logging.getLogger(__name__)

MIN_SQLITE_VERSION = (3, 24, 0)
SQLITE_BUSY_TIMEOUT_MS = 5000


def is_sqlite(url: str) -> bool:
    return make_url(url).get_backend_name() == "sqlite"


def ensure_upsert_support(version: tuple[int, ...] = sqlite3.sqlite_version_info) -> None:
    if tuple(version) < MIN_SQLITE_VERSION:
        found = ".".join(map(str, version))
        needed = ".".join(map(str, MIN_SQLITE_VERSION))
        raise ConfigurationError(f"SQLite {found} lacks ON CONFLICT support; {needed}+ is required")


def _sqlite_pragmas(dbapi_connection, _record) -> None:
    # Concurrent beacon writers wait for the lock instead of failing with
    # "database is locked"; WAL keeps the count readers off their backs.
    cursor = dbapi_connection.cursor()
    cursor.execute(f"PRAGMA busy_timeout={SQLITE_BUSY_TIMEOUT_MS}")
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.close()


def build_engine(url: str, **kwargs) -> AsyncEngine:
    """Async engine for ``url`` with per-backend pool and connection setup."""
    if not is_sqlite(url):
        kwargs = {
            "pool_size": 5,
            "max_overflow": 10,
            "pool_pre_ping": True,
            "pool_recycle": 300,
            **kwargs,
        }
    engine = create_async_engine(url, echo=False, **kwargs)
    if is_sqlite(url):
        event.listen(engine.sync_engine, "connect", _sqlite_pragmas)
    return engine


engine = build_engine(settings.database_url)
async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


class Base(DeclarativeBase):
    pass


async def get_db() -> AsyncSession:  # type: ignore[misc]
    async with async_session() as session:
        yield session


async def init_db(bind: AsyncEngine = engine) -> None:
    """Check backend support, then create the ``projects`` and ``logs`` tables."""
    if bind.dialect.name == "sqlite":
        ensure_upsert_support()
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Storage ready on %s", bind.dialect.name)


async def close_db() -> None:
    await engine.dispose()
