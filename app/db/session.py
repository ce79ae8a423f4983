import logging
from typing import AsyncGenerator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from app.core.config import settings

logger = logging.getLogger(__name__)

# pool_pre_ping: check connection is alive before use, so a restarted database
# surfaces as one failed ping instead of a broken request.
# pool_recycle: discard connections after this many seconds to avoid stale connections.
engine = create_async_engine(
    settings.database_url,
    echo=False,
    future=True,
    pool_pre_ping=True,
    pool_recycle=300,
)

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

Base = declarative_base()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        yield session


async def rollback_quietly(db: AsyncSession) -> None:
    """Roll back after a failed write; a dead connection can make the rollback fail too."""
    try:
        await db.rollback()
    except (SQLAlchemyError, OSError) as e:
        logger.warning("Rollback failed: %s", e)
