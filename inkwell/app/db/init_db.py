"""Schema setup for the blog tables."""

from sqlalchemy import inspect, text
from sqlalchemy.ext.asyncio import AsyncEngine

from inkwell.app.core.logging import get_logger
from inkwell.app.db.async_session import get_async_engine
from inkwell.app.db.base import Base
from inkwell.app.db import models  # noqa: F401 - import to register models

logger = get_logger(__name__)


async def drop_all_tables(engine: AsyncEngine | None = None) -> None:
    """Drop every blog table. Development only: all comments are lost."""
    engine = engine or get_async_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def create_all_tables(engine: AsyncEngine | None = None) -> list[str]:
    """Create missing tables; existing ones are left untouched.

    Returns:
        Names of the tables that were created
    """
    engine = engine or get_async_engine()
    async with engine.begin() as conn:
        existing = await conn.run_sync(lambda sync_conn: set(inspect(sync_conn).get_table_names()))
        await conn.run_sync(Base.metadata.create_all)
    return [name for name in Base.metadata.tables if name not in existing]


async def init_database(drop_first: bool = False, engine: AsyncEngine | None = None) -> None:
    if drop_first:
        logger.warning("Dropping all tables before initialization")
        await drop_all_tables(engine)
    created = await create_all_tables(engine)
    if created:
        logger.info(f"Created tables: {', '.join(created)}")


async def verify_connection(engine: AsyncEngine | None = None) -> bool:
    """Return True if ``SELECT 1`` succeeds on the engine."""
    engine = engine or get_async_engine()
    try:
        async with engine.connect() as conn:
            result = await conn.execute(text("SELECT 1"))
            return result.scalar() == 1
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        return False
