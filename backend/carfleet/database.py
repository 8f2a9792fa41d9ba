"""Local bookkeeping database: record ID counters and the store write log.

The spreadsheet is the source of truth for records. This SQLite file only
holds state the spreadsheet cannot: the last ID issued per sheet and a log
of every row write.
"""

import logging
from collections.abc import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from carfleet.config import settings

logger = logging.getLogger(__name__)

# NullPool: the TestClient and worker threads run their own event loops, and
# aiosqlite connections are bound to the loop that opened them.
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    connect_args={
        "check_same_thread": False,
        "timeout": settings.DB_BUSY_TIMEOUT_SECONDS,
    },
    poolclass=NullPool,
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency that yields an async database session."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Create the bookkeeping tables (idempotent) and switch SQLite to WAL."""
    from carfleet.models import IdSequence, WriteLog  # noqa: F401 - register tables
    from carfleet.models.base import Base

    async with engine.begin() as conn:
        await conn.execute(text("PRAGMA journal_mode=WAL"))
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Bookkeeping database ready at %s", engine.url.render_as_string(hide_password=True))
