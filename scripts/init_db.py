import asyncio
import logging
import sys
import os

# Add current directory to path to allow imports from core, models, etc.
sys.path.append(os.getcwd())

from core.config import settings
from core.database import create_engine_for, init_models
from sqlalchemy.ext.asyncio import async_sessionmaker
from services.phases import seed_checklist_templates

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def init_database():
    logger.info("Connecting to database...")
    engine = create_engine_for(settings.DATABASE_URL)

    logger.info("Creating tables...")
    await init_models(engine)

    session_maker = async_sessionmaker(engine, expire_on_commit=False)
    async with session_maker() as session:
        seeded = await seed_checklist_templates(session)
    logger.info(f"Tables ready, {seeded} checklist templates seeded.")

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(init_database())
