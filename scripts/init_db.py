"""
Create the bookkeeping and warehouse tables.

    python scripts/init_db.py
"""

import asyncio
import logging
import sys
import os

# Add current directory to path to allow imports from core, models, etc.
sys.path.append(os.getcwd())

from core.config import settings
from core.database import build_engine, create_bookkeeping_tables
from core.logging import setup_logging
from ingestion.loaders.warehouse import PostgresWarehouse
from schemas.table_schemas import ALERTS_TABLE, DATA_QUALITY_ALERTS, EMPLOYEES_UNIFIED

logger = logging.getLogger(__name__)


async def init_database():
    logger.info("Connecting to database...")
    engine = build_engine()

    try:
        await create_bookkeeping_tables(engine)

        warehouse = PostgresWarehouse(engine)
        await warehouse.ensure_table(settings.WAREHOUSE_TABLE, EMPLOYEES_UNIFIED)
        await warehouse.ensure_table(ALERTS_TABLE, DATA_QUALITY_ALERTS)
        logger.info("Tables created successfully.")
    finally:
        await engine.dispose()


if __name__ == "__main__":
    setup_logging()
    asyncio.run(init_database())
