"""
ETL trigger endpoints
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
import logging

from api.dependencies import get_runner
from ingestion.runner import ETLRunner
from schemas.api import WebhookResponse
from schemas.pipeline import ETLRequest, ETLResult

logger = logging.getLogger(__name__)
router = APIRouter(tags=["ETL"])


@router.post("/etl/run", response_model=ETLResult)
async def run_etl(
    etl_request: ETLRequest,
    runner: ETLRunner = Depends(get_runner),
):
    """
    Run one bounded ETL invocation.

    - ``reset``: rewind the source cursor and return
    - ``test``: probe the source connection only
    - otherwise: extract, transform, merge and load one window of records

    Failures are returned with status ``error`` and HTTP 500.
    """
    result = await runner.run(etl_request)

    if result.status == "error" and not etl_request.test:
        return JSONResponse(status_code=500, content=result.model_dump(mode="json"))
    return result


@router.post("/webhook", response_model=WebhookResponse)
async def webhook(request: Request):
    logger.info("Webhook handler called")
    return WebhookResponse(method=request.method, path=request.url.path)
