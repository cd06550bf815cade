"""
Bounded, resumable extraction.

One run reads the persisted cursor and fetches pages sequentially until the
source is exhausted or the per-run cap is reached. The new cursor is only
returned as *pending*; ``commit`` writes it once the records are loaded, so a
failure anywhere downstream leaves the old cursor in place.
"""

from typing import Any, Dict, List, Optional
import logging

from core.config import settings
from ingestion.checkpoint import CheckpointStore, process_name_for
from ingestion.connectors.base import Connector
from schemas.pipeline import ExtractionCursor, ExtractionResult, utcnow

logger = logging.getLogger(__name__)


class ResumableExtractor:

    def __init__(
        self,
        connector: Connector,
        checkpoint_store: CheckpointStore,
        page_size: Optional[int] = None,
        max_records_per_run: Optional[int] = None,
    ):
        self.connector = connector
        self.checkpoint_store = checkpoint_store
        self.page_size = page_size or settings.ETL_PAGE_SIZE
        self.max_records_per_run = max_records_per_run or settings.ETL_MAX_RECORDS_PER_RUN
        self.process_name = process_name_for(connector.source)

    @property
    def max_pages(self) -> int:
        return max(1, self.max_records_per_run // self.page_size)

    async def extract(self) -> ExtractionResult:
        cursor = await self.checkpoint_store.get_cursor(self.process_name)

        if not cursor.has_more_data:
            logger.info(f"No more data to process for {self.process_name}")
            return ExtractionResult(records=[], cursor=cursor, skipped=True)

        records: List[Dict[str, Any]] = []
        offset = cursor.offset
        pages = 0
        has_next = True

        while has_next and pages < self.max_pages:
            page = await self.connector.fetch_page(
                cursor.model_copy(update={"offset": offset}), self.page_size
            )

            # An empty page ends the source even if the last flag said otherwise
            if not page.records:
                has_next = False
                break

            records.extend(page.records)
            has_next = page.has_next
            offset += self.page_size
            pages += 1

        capped = has_next and pages >= self.max_pages

        pending = ExtractionCursor(
            source=cursor.source,
            offset=offset,
            total_processed=cursor.total_processed + len(records),
            has_more_data=capped,
            last_updated=utcnow(),
        )

        logger.info(
            f"Extracted {len(records)} records from {self.process_name} "
            f"in {pages} pages (offset {cursor.offset} -> {offset}, capped={capped})"
        )

        return ExtractionResult(
            records=records,
            cursor=pending,
            pages_fetched=pages,
            capped=capped,
        )

    async def commit(self, result: ExtractionResult) -> None:
        """Persist the pending cursor of a completed run"""
        if result.skipped:
            return
        await self.checkpoint_store.put_cursor(self.process_name, result.cursor)

    async def reset(self) -> ExtractionCursor:
        return await self.checkpoint_store.reset_cursor(self.process_name)
