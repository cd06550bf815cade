"""
Health check endpoint with database and cursor status
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, text
import logging

from api.dependencies import get_db
from models.checkpoint import ETLState
from schemas.api import ETLStateInfo, HealthCheckResponse

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthCheckResponse)
async def health_check(db: AsyncSession = Depends(get_db)):
    """
    Health check endpoint.

    Returns:
    - Database connectivity status
    - Extraction cursor of every source seen so far
    """
    db_connected = False

    try:
        await db.execute(text("SELECT 1"))
        db_connected = True
    except Exception as e:
        logger.error(f"Database connection failed: {str(e)}")

    etl_states = []
    if db_connected:
        try:
            result = await db.execute(select(ETLState).order_by(ETLState.process_name))
            etl_states = [ETLStateInfo.model_validate(s) for s in result.scalars().all()]
        except Exception as e:
            logger.error(f"Failed to fetch ETL state: {str(e)}")

    return HealthCheckResponse(database_connected=db_connected, etl_states=etl_states)
