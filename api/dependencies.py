"""
FastAPI dependencies wiring the pipeline to the database
"""

from typing import AsyncGenerator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import async_session_maker, engine
from ingestion.checkpoint import PostgresCheckpointStore
from ingestion.loaders.warehouse import PostgresWarehouse
from ingestion.run_log import PostgresRunLog
from ingestion.runner import ETLRunner
from monitoring.notifiers import build_notifier
from monitoring.quality import DataQualityMonitor


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_maker() as session:
        yield session


def get_warehouse() -> PostgresWarehouse:
    return PostgresWarehouse(engine)


def get_runner(
    db: AsyncSession = Depends(get_db),
    warehouse: PostgresWarehouse = Depends(get_warehouse),
) -> ETLRunner:
    return ETLRunner(
        checkpoint_store=PostgresCheckpointStore(db),
        warehouse=warehouse,
        run_log=PostgresRunLog(db),
    )


def get_quality_monitor(
    warehouse: PostgresWarehouse = Depends(get_warehouse),
) -> DataQualityMonitor:
    return DataQualityMonitor(warehouse, notifier=build_notifier())
