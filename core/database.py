"""
Database engine and session factories with SQLAlchemy async

The API process uses the module-level ``engine`` and
``async_session_maker``; the scheduler and the CLI scripts build their own
with ``build_engine`` so they can be disposed independently.
"""

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool
from core.config import settings
from models import Base
import logging

logger = logging.getLogger(__name__)


def build_engine(database_url: str = None) -> AsyncEngine:
    return create_async_engine(
        database_url or settings.DATABASE_URL,
        echo=False,
        poolclass=NullPool,
    )


def build_session_maker(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False
    )


async def create_bookkeeping_tables(engine: AsyncEngine) -> None:
    """Create ``etl_state`` and ``etl_execution_log`` if they do not exist"""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Bookkeeping tables ready")


engine = build_engine()
async_session_maker = build_session_maker(engine)
