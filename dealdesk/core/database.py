"""
Database engine, connection pool and session factory.

The engine owns the process-wide bounded pool. It is created once at startup
(``create_db_engine``) and drained on shutdown (``dispose``).
"""
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from dealdesk.core.base import Base
from dealdesk.core.config import Settings, settings as default_settings
from dealdesk.core.logging import get_logger

# Import models to register them with Base.metadata
from dealdesk.models.deal import Deal  # noqa: F401

logger = get_logger(__name__)


def create_db_engine(settings: Settings = default_settings) -> AsyncEngine:
    """Create the async engine and its connection pool."""
    url = settings.database_url
    engine_args = {
        "echo": settings.DEBUG,
    }

    # SQLite doesn't support pool_size/max_overflow, so we conditionally add them
    if "sqlite" not in url:
        engine_args.update({
            "pool_pre_ping": True,
            "pool_size": settings.DB_POOL_SIZE,
            "max_overflow": 0,
            "pool_timeout": settings.DB_POOL_TIMEOUT,
            "pool_use_lifo": False,
        })

    engine = create_async_engine(url, **engine_args)
    logger.info("Database engine created", pool_size=settings.DB_POOL_SIZE, dialect=engine.dialect.name)
    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create the session factory bound to ``engine``."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def init_db(engine: AsyncEngine) -> None:
    """Create tables that do not exist yet."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose(engine: AsyncEngine) -> None:
    """Close every pooled connection."""
    await engine.dispose()
    logger.info("Database connections closed")
