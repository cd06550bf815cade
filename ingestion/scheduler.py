import logging
from typing import List, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from core.config import Settings, settings as default_settings
from core.database import build_engine, build_session_maker
from core.exceptions import ConfigurationError
from ingestion.checkpoint import PostgresCheckpointStore
from ingestion.connectors import build_connector
from ingestion.loaders.warehouse import PostgresWarehouse
from ingestion.run_log import PostgresRunLog
from ingestion.runner import ETLRunner
from models.base import SourceSystem
from schemas.pipeline import ETLRequest

logger = logging.getLogger(__name__)


def configured_sources(config: Settings) -> List[SourceSystem]:
    """Sources whose credentials are present in settings"""
    sources = []
    for source in SourceSystem:
        try:
            build_connector(source, config)
        except ConfigurationError:
            continue
        sources.append(source)
    return sources


class ETLScheduler:
    """
    Re-invokes the pipeline on a fixed interval.

    Each tick runs one bounded invocation per configured source, one after
    the other, so a source never has two invocations in flight.
    """

    def __init__(self, config: Optional[Settings] = None):
        self.config = config or default_settings
        self.scheduler = AsyncIOScheduler()
        self.engine = build_engine(self.config.DATABASE_URL)
        self.SessionLocal = build_session_maker(self.engine)
        self.warehouse = PostgresWarehouse(self.engine)

    async def run_etl_job(self):
        """Job to run ETL pipeline"""
        logger.info("Scheduler: Starting ETL job")

        for source in configured_sources(self.config):
            async with self.SessionLocal() as session:
                runner = ETLRunner(
                    checkpoint_store=PostgresCheckpointStore(session),
                    warehouse=self.warehouse,
                    run_log=PostgresRunLog(session),
                    config=self.config,
                )
                result = await runner.run(ETLRequest(source=source))
                logger.info(f"Scheduler: {source.value} finished with {result.status}: {result.message}")

    def start(self):
        """Start the scheduler"""
        self.scheduler.add_job(
            self.run_etl_job,
            trigger=IntervalTrigger(minutes=self.config.ETL_SCHEDULE_MINUTES),
            id="etl_job",
            replace_existing=True,
            max_instances=1,
        )
        self.scheduler.start()
        logger.info("ETL Scheduler started")

    def stop(self):
        self.scheduler.shutdown()
        logger.info("ETL Scheduler stopped")
