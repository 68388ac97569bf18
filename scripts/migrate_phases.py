"""
Normalize projects.phase to build/live on an existing database.

Offline equivalent of alembic revision 002 for databases that were never
put under alembic:

    python scripts/migrate_phases.py

On SQLite the projects table is rebuilt from the current model so the
two-valued CHECK constraint exists; other backends only get the data fix.
"""

import asyncio
import logging
import sys
import os

# Add current directory to path to allow imports from core, models, etc.
sys.path.append(os.getcwd())

from sqlalchemy import MetaData, case, text
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import NullPool
from core.config import settings
from models.base import LEGACY_LIVE_PHASES, ProjectPhase
from models.project import Project

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

REBUILD_TABLE = "projects_rebuild"


def phase_case(column):
    """SQL expression mapping any stored phase onto build/live."""
    return case(
        (column.in_(LEGACY_LIVE_PHASES + (ProjectPhase.LIVE.value,)), ProjectPhase.LIVE.value),
        else_=ProjectPhase.BUILD.value,
    )


async def rebuild_sqlite(conn) -> int:
    old_columns = [row[1] for row in (await conn.execute(text("PRAGMA table_info(projects)"))).all()]
    if not old_columns:
        logger.warning("No projects table found, nothing to migrate")
        return 0

    new_table = Project.__table__.to_metadata(MetaData(), name=REBUILD_TABLE)
    copied = [c.name for c in new_table.columns if c.name in old_columns]

    await conn.execute(text(f"DROP TABLE IF EXISTS {REBUILD_TABLE}"))
    await conn.run_sync(new_table.create)

    live_values = ", ".join(f"'{p}'" for p in LEGACY_LIVE_PHASES + (ProjectPhase.LIVE.value,))
    phase_sql = f"CASE WHEN phase IN ({live_values}) THEN 'live' ELSE 'build' END"
    select_list = ", ".join(phase_sql if name == "phase" else name for name in copied)
    column_list = ", ".join(copied)
    result = await conn.execute(
        text(f"INSERT INTO {REBUILD_TABLE} ({column_list}) SELECT {select_list} FROM projects")
    )

    await conn.execute(text("DROP TABLE projects"))
    await conn.execute(text(f"ALTER TABLE {REBUILD_TABLE} RENAME TO projects"))
    return result.rowcount


async def migrate_phases():
    engine = create_async_engine(settings.DATABASE_URL, poolclass=NullPool)

    async with engine.connect() as conn:
        if engine.dialect.name == "sqlite":
            # Has no effect once a transaction is open, so it goes first
            await conn.execute(text("PRAGMA foreign_keys=OFF"))
            migrated = await rebuild_sqlite(conn)
            await conn.commit()

            violations = (await conn.execute(text("PRAGMA foreign_key_check"))).all()
            await conn.execute(text("PRAGMA foreign_keys=ON"))
            if violations:
                logger.error(f"Foreign key violations after rebuild: {violations}")
        else:
            projects = Project.__table__
            result = await conn.execute(
                projects.update().values(phase=phase_case(projects.c.phase))
            )
            migrated = result.rowcount
            await conn.commit()
            logger.info("Run `alembic upgrade head` to add the phase CHECK constraint")

    logger.info(f"Normalized phase on {migrated} projects")
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(migrate_phases())
