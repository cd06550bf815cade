"""
Run the ETL pipeline or the data quality checks from the command line.

    python scripts/run_etl.py --source garoon
    python scripts/run_etl.py --all
    python scripts/run_etl.py --source smarthr --reset
    python scripts/run_etl.py --quality
"""

import argparse
import asyncio
import sys
import os
import logging
from typing import List, Optional

# Add current directory to path to allow imports from core, models, etc.
sys.path.append(os.getcwd())

from core.database import build_engine, build_session_maker
from core.config import settings
from core.logging import setup_logging
from ingestion.checkpoint import PostgresCheckpointStore
from ingestion.loaders.warehouse import PostgresWarehouse
from ingestion.run_log import PostgresRunLog
from ingestion.runner import ETLRunner
from ingestion.scheduler import configured_sources
from models.base import SourceSystem
from monitoring.notifiers import build_notifier
from monitoring.quality import DataQualityMonitor
from schemas.pipeline import ETLRequest

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Workforce ETL runner")
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument("--source", choices=[s.value for s in SourceSystem])
    group.add_argument("--all", action="store_true", help="Run every configured source")
    group.add_argument("--quality", action="store_true", help="Run data quality checks")
    parser.add_argument("--target", default="bigquery")
    parser.add_argument("--reset", action="store_true", help="Rewind the source cursor")
    parser.add_argument("--test", action="store_true", help="Only test the connection")
    return parser


def build_requests(args: argparse.Namespace) -> List[ETLRequest]:
    sources = configured_sources(settings) if args.all else [SourceSystem(args.source)]
    return [
        ETLRequest(source=source, target=args.target, test=args.test, reset=args.reset)
        for source in sources
    ]


async def run_etl(args: argparse.Namespace) -> int:
    """Run the requested invocations and return the process exit code"""
    engine = build_engine()
    AsyncSessionLocal = build_session_maker(engine)
    warehouse = PostgresWarehouse(engine)
    exit_code = 0

    try:
        if args.quality:
            report = await DataQualityMonitor(warehouse, notifier=build_notifier()).run_all_checks()
            logger.info(f"Data quality check completed with {report.alerts_count} alerts")
            return 0

        requests = build_requests(args)
        if not requests:
            logger.warning("No data sources configured. Skipping ETL.")
            return 0

        for request in requests:
            async with AsyncSessionLocal() as session:
                runner = ETLRunner(
                    checkpoint_store=PostgresCheckpointStore(session),
                    warehouse=warehouse,
                    run_log=PostgresRunLog(session),
                )
                result = await runner.run(request)

            logger.info(
                f"{request.source.value}: {result.status} - {result.message} "
                f"(processed={result.records_processed}, inserted={result.records_inserted}, "
                f"has_more_data={result.has_more_data})"
            )
            if result.status != "success":
                exit_code = 1

        return exit_code
    finally:
        await engine.dispose()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging()
    return asyncio.run(run_etl(args))


if __name__ == "__main__":
    sys.exit(main())
