"""Database connection and session management."""
import logging
from typing import Any, Dict
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from app.core.config import settings
from app.db.models import Base

logger = logging.getLogger(__name__)


def async_database_url(url: str) -> str:
    """Convert a plain database URL to its async driver form."""
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if url.startswith("sqlite://"):
        return url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    return url


def driver_connect_args(url: str, timeout: float) -> Dict[str, Any]:
    """Per-driver connection arguments that bound each datastore call."""
    if url.startswith("postgresql+asyncpg://"):
        return {"command_timeout": timeout}
    if url.startswith("sqlite+aiosqlite://"):
        return {"timeout": timeout}
    return {}


database_url = async_database_url(settings.database_url)

engine = create_async_engine(
    database_url,
    echo=False,
    future=True,
    connect_args=driver_connect_args(database_url, settings.database_timeout),
)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def init_db() -> None:
    """Initialize database tables."""
    logger.info("Creating database tables if missing")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_db() -> AsyncSession:
    """Dependency for getting database session."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()
