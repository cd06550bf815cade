"""
Load unified records through per-batch staging tables.

Each batch is written to its own staging table and merged into the target
with one set-based upsert, so re-running a batch never creates duplicates.
Batches are committed independently: when batch N fails, batches 0..N-1
stay in the warehouse.
"""

from typing import Any, Dict, List, Optional, Sequence
import logging
import uuid

from core.config import settings
from core.exceptions import ETLException, LoadError, StagingTableError, UpsertError
from ingestion.loaders.warehouse import Warehouse
from schemas.normalized import IDENTITY_KEY, UnifiedRecord
from schemas.table_schemas import EMPLOYEES_UNIFIED, TableSchema, column_names

logger = logging.getLogger(__name__)


def staging_table_name(target: str, run_token: str, batch_index: int) -> str:
    return f"{target}_staging_{run_token}_{batch_index}"


class StagingUpsertLoader:
    """
    Idempotent batch loader.

    Per batch:
    1. Ensure the target table exists
    2. Create a staging table with the same columns
    3. Bulk insert the batch into staging
    4. Upsert staging into target on the identity key
    5. Drop staging (failures are logged only)
    """

    def __init__(
        self,
        warehouse: Warehouse,
        batch_size: Optional[int] = None,
        schema: TableSchema = EMPLOYEES_UNIFIED,
        identity_key: str = IDENTITY_KEY,
    ):
        self.warehouse = warehouse
        self.batch_size = batch_size or settings.ETL_BATCH_SIZE
        self.schema = schema
        self.identity_key = identity_key
        self._columns = column_names(schema)

    def to_rows(self, records: Sequence[UnifiedRecord]) -> List[Dict[str, Any]]:
        """Project records onto the table columns, skipping rows with no identity key"""
        rows = []
        for record in records:
            data = record.model_dump()
            if not data.get(self.identity_key):
                logger.warning(
                    f"Skipping record {data.get('record_id')}: missing {self.identity_key}"
                )
                continue
            rows.append({name: data.get(name) for name in self._columns})
        return rows

    async def load(self, records: Sequence[UnifiedRecord], target: str) -> int:
        """
        Write ``records`` into ``target`` and return the number of rows written.

        Raises:
            LoadError: If any batch fails; the context carries the batch
                index and the rows committed by earlier batches
        """
        rows = self.to_rows(records)
        if not rows:
            return 0

        run_token = uuid.uuid4().hex[:8]
        committed = 0

        for batch_index, start in enumerate(range(0, len(rows), self.batch_size)):
            batch = rows[start:start + self.batch_size]
            committed += await self.load_batch(batch, target, run_token, batch_index, committed)

        logger.info(f"Loaded {committed} rows into {target}")
        return committed

    async def load_batch(
        self,
        batch: List[Dict[str, Any]],
        target: str,
        run_token: str,
        batch_index: int,
        committed: int = 0,
    ) -> int:
        staging = staging_table_name(target, run_token, batch_index)
        context = {
            "table": target,
            "staging_table": staging,
            "batch_index": batch_index,
            "batch_size": len(batch),
            "rows_committed": committed,
        }

        try:
            try:
                await self.warehouse.ensure_table(target, self.schema)
            except Exception as e:
                raise LoadError(
                    f"Failed to ensure target table {target}",
                    context=context,
                    original_exception=e
                )

            try:
                await self.warehouse.ensure_table(staging, self.schema)
                await self.warehouse.bulk_insert(staging, batch)
            except Exception as e:
                raise StagingTableError(
                    f"Failed to stage batch {batch_index}",
                    context=context,
                    original_exception=e
                )

            try:
                await self.warehouse.merge_upsert(target, staging, self.identity_key)
            except Exception as e:
                raise UpsertError(
                    f"Failed to merge batch {batch_index} into {target}",
                    context=context,
                    original_exception=e
                )

        except ETLException as e:
            logger.error(str(e), extra={"error_context": e.to_dict()})
            await self._drop_staging(staging)
            raise

        await self._drop_staging(staging)
        logger.info(f"Batch {batch_index}: upserted {len(batch)} rows into {target}")
        return len(batch)

    async def _drop_staging(self, staging: str) -> None:
        try:
            await self.warehouse.drop_table(staging)
        except Exception as e:
            logger.warning(f"Failed to drop staging table {staging}: {e}")
