"""
Database session management with SQLAlchemy async
"""

from typing import Any, Dict, List
from sqlalchemy import event
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool
from core.config import settings
import logging

logger = logging.getLogger(__name__)


def create_engine_for(url: str, echo: bool = False) -> AsyncEngine:
    """
    Create an async engine for the given URL.

    SQLite connections get foreign key enforcement and driver-level
    transaction control so SAVEPOINTs (``session.begin_nested()``) behave.
    """
    engine = create_async_engine(
        url,
        echo=echo,
        poolclass=NullPool,
        future=True
    )

    if engine.dialect.name == "sqlite":
        @event.listens_for(engine.sync_engine, "connect")
        def _on_connect(dbapi_connection, connection_record):
            # pysqlite's own BEGIN handling breaks SAVEPOINT; emit BEGIN ourselves
            dbapi_connection.isolation_level = None
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        @event.listens_for(engine.sync_engine, "begin")
        def _on_begin(conn):
            conn.exec_driver_sql("BEGIN")

    return engine


# Create async engine
engine = create_engine_for(settings.DATABASE_URL)

# Create session factory
async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False
)


async def insert_ignore(
    session: AsyncSession,
    model,
    values: Dict[str, Any],
    conflict_columns: List[str]
) -> bool:
    """
    INSERT ... ON CONFLICT DO NOTHING for the session's dialect.

    Returns:
        True if a new row was written, False if the unique key already existed
    """
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        stmt = postgresql.insert(model).values(**values)
    elif dialect == "sqlite":
        stmt = sqlite.insert(model).values(**values)
    else:
        raise NotImplementedError(f"insert_ignore is not supported on {dialect}")

    stmt = stmt.on_conflict_do_nothing(index_elements=conflict_columns)
    result = await session.execute(stmt)
    return result.rowcount == 1


async def init_models(target_engine: AsyncEngine = None) -> None:
    """Create any missing tables (CREATE TABLE IF NOT EXISTS semantics)."""
    from models import Base

    target_engine = target_engine or engine
    async with target_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables verified")
