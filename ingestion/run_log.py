"""
Execution log: one ``etl_execution_log`` row per pipeline invocation
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, Optional
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from models.base import ETLStatus
from models.etl_run import ETLRun
from schemas.pipeline import ETLRequest, ETLResult

logger = logging.getLogger(__name__)


class RunLog(ABC):

    @abstractmethod
    async def record(
        self,
        request: ETLRequest,
        result: ETLResult,
        started_at: datetime,
        data_quality: Optional[Dict[str, Any]] = None,
    ) -> None:
        pass


class PostgresRunLog(RunLog):

    def __init__(self, db_session: AsyncSession):
        self.db = db_session

    async def record(
        self,
        request: ETLRequest,
        result: ETLResult,
        started_at: datetime,
        data_quality: Optional[Dict[str, Any]] = None,
    ) -> None:
        success = result.status == "success"
        duration = result.timestamp - started_at

        run = ETLRun(
            source_system=result.source or "none",
            target=result.target or request.target,
            status=ETLStatus.SUCCESS if success else ETLStatus.FAILED,
            success=success,
            start_time=started_at,
            end_time=result.timestamp,
            duration_ms=int(duration.total_seconds() * 1000),
            records_processed=result.records_processed,
            records_inserted=result.records_inserted,
            total_processed=result.total_processed,
            has_more_data=result.has_more_data,
            next_offset=result.next_offset,
            error_message=None if success else result.message,
            data_quality=data_quality,
        )

        try:
            self.db.add(run)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to record ETL run for {run.source_system}: {e}")
