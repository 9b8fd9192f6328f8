import logging
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase

from promodesk.config import settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


def normalize_database_url(url: str) -> str:
    """Pick the async driver for the configured database URL."""
    if url.startswith("postgresql+asyncpg://"):
        # Switch to psycopg for async PostgreSQL
        return url.replace("postgresql+asyncpg://", "postgresql+psycopg://")
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+psycopg://")
    if url.startswith("sqlite:///"):
        return url.replace("sqlite:///", "sqlite+aiosqlite:///")
    return url


def create_engine(url: str) -> AsyncEngine:
    """Create async engine with settings appropriate for the database type."""
    database_url = normalize_database_url(url)

    # SQLite doesn't support pool settings
    if database_url.startswith("sqlite"):
        return create_async_engine(
            database_url,
            echo=settings.DEBUG,
            future=True,
            connect_args={"check_same_thread": False},
        )
    return create_async_engine(
        database_url,
        echo=settings.DEBUG,
        future=True,
        pool_pre_ping=True,  # Check connection health before use
    )


engine = create_engine(settings.DATABASE_URL)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


@asynccontextmanager
async def get_db_session(factory: async_sessionmaker = None):
    """Context manager for getting database session outside of request scope."""
    factory = factory or async_session_factory
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db(bind: AsyncEngine = None) -> None:
    """Initialize database tables."""
    # Import all models to register them with Base.metadata
    from promodesk import models  # noqa: F401

    bind = bind or engine
    logger.info(f"Registered {len(Base.metadata.tables)} tables")
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
