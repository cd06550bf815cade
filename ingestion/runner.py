# ============================================================================
# File: ingestion/runner.py
# Description: ETL orchestrator for one (source, target) invocation
# ============================================================================
"""
ETL Runner - Orchestrates Extract, Transform, Merge, Load for one source.

One invocation:
1. Extract - bounded page run from the persisted cursor
2. Transform - map raw records to UnifiedRecord (advisory validation)
3. Merge - collapse records sharing an employee_id
4. Load - staged, idempotent upsert into the warehouse
5. Checkpoint - persist the pending cursor, only after a successful load

Every outcome, including failures, is returned as an ETLResult. A failed
run leaves the cursor untouched, so the next invocation re-fetches the
same window and the upsert absorbs the overlap.
"""

from datetime import datetime, timezone
from typing import Callable, Dict, Optional
import logging

from core.config import Settings, settings as default_settings
from core.exceptions import ETLException
from ingestion.checkpoint import CheckpointStore, process_name_for
from ingestion.connectors import build_connector
from ingestion.connectors.base import Connector
from ingestion.extraction import ResumableExtractor
from ingestion.loaders.upsert_loader import StagingUpsertLoader
from ingestion.loaders.warehouse import Warehouse
from ingestion.run_log import RunLog
from ingestion.transformers import DataTransformer, merge_duplicates
from ingestion.transformers.field_mappings import get_field_mapping
from models.base import SourceSystem
from monitoring.quality import assess_data_quality
from schemas.pipeline import ETLRequest, ETLResult

logger = logging.getLogger(__name__)

ConnectorFactory = Callable[[SourceSystem], Connector]


class ETLRunner:
    """
    ETL orchestrator with explicitly passed collaborators.

    Responsibilities:
    - Dispatch reset / connection test / pipeline run
    - Keep the cursor behind the load (at-least-once delivery)
    - Convert every failure into a structured error result
    - Record each invocation in the execution log when one is given
    """

    def __init__(
        self,
        checkpoint_store: CheckpointStore,
        warehouse: Warehouse,
        connector_factory: Optional[ConnectorFactory] = None,
        transformer: Optional[DataTransformer] = None,
        loader: Optional[StagingUpsertLoader] = None,
        run_log: Optional[RunLog] = None,
        config: Optional[Settings] = None,
    ):
        self.config = config or default_settings
        self.checkpoint_store = checkpoint_store
        self.warehouse = warehouse
        self.connector_factory = connector_factory or (
            lambda source: build_connector(source, self.config)
        )
        self.transformer = transformer or DataTransformer(
            strict_validation=self.config.STRICT_VALIDATION
        )
        self.loader = loader or StagingUpsertLoader(warehouse, batch_size=self.config.ETL_BATCH_SIZE)
        self.run_log = run_log
        self.targets: Dict[str, str] = {
            "bigquery": self.config.WAREHOUSE_TABLE,
            "warehouse": self.config.WAREHOUSE_TABLE,
        }

    async def run(self, request: ETLRequest) -> ETLResult:
        logger.info(
            f"ETL request: source={request.source}, target={request.target}, "
            f"test={request.test}, reset={request.reset}"
        )
        started_at = datetime.now(timezone.utc)
        data_quality = None

        try:
            if request.reset:
                result = await self.reset(request)
            elif request.source is None or request.target not in self.targets:
                result = ETLResult(status="success", message="ETL function is working")
            elif request.test:
                result = await self.test_connection(request)
            else:
                result, data_quality = await self.run_pipeline(request)

        except ETLException as e:
            logger.error(f"ETL Error: {e}", extra={"error_context": e.to_dict()})
            result = self._error_result(request, e.message, e.context)

        except Exception as e:
            logger.exception(f"Unexpected ETL error: {e}")
            result = self._error_result(request, str(e), {})

        if self.run_log is not None and request.source is not None:
            await self.run_log.record(request, result, started_at, data_quality)

        return result

    async def reset(self, request: ETLRequest) -> ETLResult:
        """Rewind the named source, or every source when none is given"""
        sources = [request.source] if request.source else list(SourceSystem)
        for source in sources:
            await self.checkpoint_store.reset_cursor(process_name_for(source))

        return ETLResult(
            status="success",
            message="ETL state reset to beginning",
            source=request.source.value if request.source else None,
            target=request.target,
            has_more_data=True,
            next_offset=0,
        )

    async def test_connection(self, request: ETLRequest) -> ETLResult:
        connector = self.connector_factory(request.source)
        ok = await connector.test_connection()
        source = request.source.value
        return ETLResult(
            status="success" if ok else "error",
            message=f"{source} connection {'succeeded' if ok else 'failed'}",
            source=source,
            target=request.target,
        )

    async def run_pipeline(self, request: ETLRequest):
        source = request.source
        table = self.targets[request.target]

        # Fail on configuration before any I/O
        get_field_mapping(source)
        connector = self.connector_factory(source)

        extractor = ResumableExtractor(
            connector,
            self.checkpoint_store,
            page_size=self.config.ETL_PAGE_SIZE,
            max_records_per_run=self.config.ETL_MAX_RECORDS_PER_RUN,
        )

        # -------------------------------------------------- EXTRACT
        extraction = await extractor.extract()

        if not extraction.records:
            await extractor.commit(extraction)
            return ETLResult(
                status="success",
                message="ETL process complete. No more data to process.",
                source=source.value,
                target=request.target,
                total_processed=extraction.cursor.total_processed,
                has_more_data=False,
            ), None

        logger.info(f"Fetched {len(extraction.records)} records from {source.value}")

        # -------------------------------------------------- TRANSFORM + MERGE
        outcome = self.transformer.transform_batch(extraction.records, source)
        merged = merge_duplicates(outcome.records)
        logger.info(
            f"Transformed {len(outcome.records)} records "
            f"({outcome.validation_failures} with validation warnings, "
            f"{len(outcome.quarantined)} quarantined), {len(merged)} after merge"
        )

        # -------------------------------------------------- LOAD
        inserted = await self.loader.load(merged, table)

        # -------------------------------------------------- CHECKPOINT
        await extractor.commit(extraction)

        cursor = extraction.cursor
        message = (
            "ETL pipeline completed successfully. More data available - will continue on next run."
            if cursor.has_more_data
            else "ETL pipeline completed successfully. All data processed."
        )
        logger.info(message)

        result = ETLResult(
            status="success",
            message=message,
            source=source.value,
            target=request.target,
            records_processed=len(outcome.records) + len(outcome.quarantined),
            records_inserted=inserted,
            total_processed=cursor.total_processed,
            has_more_data=cursor.has_more_data,
            next_offset=cursor.offset,
        )
        return result, assess_data_quality(merged)

    @staticmethod
    def _error_result(request: ETLRequest, message: str, context: dict) -> ETLResult:
        return ETLResult(
            status="error",
            message=message,
            source=request.source.value if request.source else None,
            target=request.target,
            records_inserted=int(context.get("rows_committed", 0) or 0),
        )
