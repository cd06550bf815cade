"""
Checkpoint store: persisted resumption cursor per source system.

The store is read-then-written without fencing. Running two invocations
for the same source concurrently can lose a cursor update, so callers must
run at most one invocation per source at a time.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Union
import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import CheckpointError
from models.base import SourceSystem
from models.checkpoint import ETLState
from schemas.pipeline import ExtractionCursor

logger = logging.getLogger(__name__)


def process_name_for(source: Union[SourceSystem, str]) -> str:
    value = source.value if isinstance(source, SourceSystem) else str(source)
    return f"{value}_sync"


def _source_of(process_name: str) -> str:
    return process_name[:-len("_sync")] if process_name.endswith("_sync") else process_name


class CheckpointStore(ABC):
    """Cursor persistence contract"""

    @abstractmethod
    async def get_cursor(self, process_name: str) -> ExtractionCursor:
        """Return the cursor, creating a zeroed one on first access"""

    @abstractmethod
    async def put_cursor(self, process_name: str, cursor: ExtractionCursor) -> None:
        pass

    async def reset_cursor(self, process_name: str) -> ExtractionCursor:
        """Rewind to offset 0 with more data expected, whatever the prior state"""
        cursor = ExtractionCursor.initial(_source_of(process_name))
        await self.put_cursor(process_name, cursor)
        logger.info(f"Reset ETL state for {process_name}")
        return cursor


class PostgresCheckpointStore(CheckpointStore):
    """Cursor rows in the ``etl_state`` table"""

    def __init__(self, db_session: AsyncSession):
        self.db = db_session

    async def _get_state(self, process_name: str):
        result = await self.db.execute(
            select(ETLState).where(ETLState.process_name == process_name)
        )
        return result.scalar_one_or_none()

    async def get_cursor(self, process_name: str) -> ExtractionCursor:
        try:
            state = await self._get_state(process_name)

            if state is None:
                state = ETLState(
                    process_name=process_name,
                    current_offset=0,
                    total_processed=0,
                    has_more_data=True,
                    last_updated=datetime.now(timezone.utc)
                )
                self.db.add(state)
                await self.db.commit()
                logger.info(f"Initialized ETL state for {process_name}")

            return ExtractionCursor(
                source=_source_of(process_name),
                offset=int(state.current_offset),
                total_processed=int(state.total_processed),
                has_more_data=bool(state.has_more_data),
                last_updated=state.last_updated
            )

        except SQLAlchemyError as e:
            await self.db.rollback()
            raise CheckpointError(
                "Failed to read ETL state",
                context={"process_name": process_name, "operation": "read"},
                original_exception=e
            )

    async def put_cursor(self, process_name: str, cursor: ExtractionCursor) -> None:
        try:
            state = await self._get_state(process_name)
            now = datetime.now(timezone.utc)

            if state is None:
                state = ETLState(process_name=process_name)
                self.db.add(state)

            state.current_offset = cursor.offset
            state.total_processed = cursor.total_processed
            state.has_more_data = cursor.has_more_data
            state.last_updated = now

            await self.db.commit()

        except SQLAlchemyError as e:
            await self.db.rollback()
            raise CheckpointError(
                "Failed to update ETL state",
                context={"process_name": process_name, "operation": "write"},
                original_exception=e
            )

        logger.info(
            f"Updated ETL state: {process_name} offset={cursor.offset}, "
            f"total={cursor.total_processed}, hasMore={cursor.has_more_data}"
        )
