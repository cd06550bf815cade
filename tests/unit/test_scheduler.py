import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from core.config import Settings
from ingestion.scheduler import ETLScheduler, configured_sources
from models.base import SourceSystem
from schemas.pipeline import ETLResult


def _config(**overrides):
    return Settings(
        GAROON_API_ENDPOINT="https://garoon.example.com/api",
        GAROON_AUTH_TOKEN="token",
        PCA_BASE_URL="https://pca.example.com",
        PCA_API_KEY="key",
        ETL_SCHEDULE_MINUTES=15,
        **overrides
    )


def test_configured_sources_skips_missing_credentials():
    assert configured_sources(_config()) == [SourceSystem.GAROON, SourceSystem.PCA]


@pytest.mark.asyncio
async def test_scheduler_initialization():
    scheduler = ETLScheduler(_config())
    assert scheduler.scheduler is not None
    assert scheduler.engine is not None
    assert scheduler.warehouse.engine is scheduler.engine


@pytest.mark.asyncio
async def test_scheduler_job_runs_each_configured_source():
    with patch("ingestion.scheduler.ETLRunner") as mock_runner_cls:
        mock_runner = MagicMock()
        mock_runner.run = AsyncMock(return_value=ETLResult(status="success", message="ok"))
        mock_runner_cls.return_value = mock_runner

        session_cm = MagicMock()
        session_cm.__aenter__ = AsyncMock(return_value=AsyncMock())
        session_cm.__aexit__ = AsyncMock(return_value=False)

        scheduler = ETLScheduler(_config())
        scheduler.SessionLocal = MagicMock(return_value=session_cm)

        await scheduler.run_etl_job()

        requested = [call.args[0].source for call in mock_runner.run.await_args_list]
        assert requested == [SourceSystem.GAROON, SourceSystem.PCA]


@pytest.mark.asyncio
async def test_scheduler_uses_configured_interval():
    scheduler = ETLScheduler(_config())
    with patch.object(scheduler.scheduler, "start"):
        scheduler.start()

    job = scheduler.scheduler.get_job("etl_job")
    assert job.trigger.interval.total_seconds() == 15 * 60
