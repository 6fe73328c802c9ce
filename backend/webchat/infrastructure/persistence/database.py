"""
Async SQLAlchemy engine and session factory.

Created once per process by the DI container (Scope.APP). Repositories open
one session and one transaction per operation, so every Store call is atomic
on its own and nothing holds a connection between requests.
"""

import logging

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from webchat.infrastructure.persistence.models import Base

logger = logging.getLogger(__name__)


def create_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """
    Create the async engine for `database_url`.

    SQLite gets foreign keys switched on, and an in-memory database is pinned
    to a single shared connection so every session sees the same tables.
    """
    url = make_url(database_url)
    kwargs = {"echo": echo}
    is_sqlite = url.get_backend_name() == "sqlite"
    if is_sqlite and url.database in (None, "", ":memory:"):
        kwargs["poolclass"] = StaticPool
        kwargs["connect_args"] = {"check_same_thread": False}

    engine = create_async_engine(database_url, **kwargs)

    if is_sqlite:

        @event.listens_for(engine.sync_engine, "connect")
        def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    logger.info(f"[Database] Engine created for {url.render_as_string(hide_password=True)}")
    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # expire_on_commit=False: entities are mapped after commit in some paths
    return async_sessionmaker(engine, expire_on_commit=False)


async def init_models(engine: AsyncEngine) -> None:
    """Create missing tables. Existing tables are left untouched."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("[Database] Schema ready")


async def dispose_engine(engine: AsyncEngine) -> None:
    await engine.dispose()
    logger.info("[Database] Engine disposed")
