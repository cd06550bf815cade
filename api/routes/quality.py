"""
Data quality check endpoint
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
import logging

from api.dependencies import get_quality_monitor
from monitoring.quality import DataQualityMonitor
from schemas.api import QualityCheckResponse

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Quality"])


@router.post("/quality/check", response_model=QualityCheckResponse)
async def quality_check(monitor: DataQualityMonitor = Depends(get_quality_monitor)):
    """Run freshness, completeness, validity and duplicate checks now"""
    try:
        report = await monitor.run_all_checks()
    except Exception as e:
        logger.exception(f"Data quality check error: {e}")
        body = QualityCheckResponse(success=False, error=str(e))
        return JSONResponse(status_code=500, content=body.model_dump(mode="json"))

    return QualityCheckResponse(success=True, alerts_count=report.alerts_count, results=report)
