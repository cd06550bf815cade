"""
End-to-end pipeline runs against in-memory collaborators
"""

import pytest

from core.config import Settings
from core.exceptions import ConfigurationError
from ingestion.runner import ETLRunner
from ingestion.run_log import RunLog
from models.base import SourceSystem
from schemas.pipeline import ETLRequest, ExtractionCursor
from tests.fakes import FakeConnector, InMemoryWarehouse


class RecordingRunLog(RunLog):

    def __init__(self):
        self.entries = []

    async def record(self, request, result, started_at, data_quality=None):
        self.entries.append((request, result, data_quality))


def _config(**overrides):
    values = dict(ETL_PAGE_SIZE=10, ETL_MAX_RECORDS_PER_RUN=20, ETL_BATCH_SIZE=500)
    values.update(overrides)
    return Settings(**values)


def _runner(connector, checkpoint_store, warehouse, run_log=None, **config):
    return ETLRunner(
        checkpoint_store=checkpoint_store,
        warehouse=warehouse,
        connector_factory=lambda source: connector,
        run_log=run_log,
        config=_config(**config),
    )


class TestETLPipeline:

    @pytest.mark.asyncio
    async def test_capped_run_then_completion(self, garoon_dataset, checkpoint_store, warehouse):
        """25 records, 10 per page, 20 per run: two invocations drain the source"""
        connector = FakeConnector(garoon_dataset)
        runner = _runner(connector, checkpoint_store, warehouse)

        first = await runner.run(ETLRequest(source=SourceSystem.GAROON))

        assert first.status == "success"
        assert first.records_processed == 20
        assert first.records_inserted == 20
        assert first.has_more_data is True
        assert first.next_offset == 20
        assert first.total_processed == 20
        assert first.message.endswith("More data available - will continue on next run.")

        second = await runner.run(ETLRequest(source=SourceSystem.GAROON))

        assert second.records_processed == 5
        assert second.has_more_data is False
        assert second.total_processed == 25
        assert second.next_offset == 30
        assert second.message == "ETL pipeline completed successfully. All data processed."

        rows = warehouse.tables["employees_unified"]
        assert len(rows) == 25
        assert rows[0]["source_system"] == "garoon"
        assert rows[0]["hire_date"] == "2022-04-01T00:00:00.000Z"

        third = await runner.run(ETLRequest(source=SourceSystem.GAROON))

        assert third.status == "success"
        assert third.message == "ETL process complete. No more data to process."
        assert third.records_processed == 0
        assert third.total_processed == 25
        assert connector.calls == [0, 10, 20]

    @pytest.mark.asyncio
    async def test_load_failure_keeps_cursor(self, garoon_dataset, checkpoint_store):
        """A failed load reports an error and the next run re-fetches the same window"""
        warehouse = InMemoryWarehouse(fail={"merge_upsert": {0}})
        connector = FakeConnector(garoon_dataset)
        runner = _runner(connector, checkpoint_store, warehouse)

        failed = await runner.run(ETLRequest(source=SourceSystem.GAROON))

        assert failed.status == "error"
        assert "Failed to merge batch 0" in failed.message
        assert checkpoint_store.writes == []

        retried = await runner.run(ETLRequest(source=SourceSystem.GAROON))

        assert retried.status == "success"
        assert connector.calls == [0, 10, 0, 10]
        assert len(warehouse.tables["employees_unified"]) == 20

    @pytest.mark.asyncio
    async def test_fetch_failure_is_reported(self, garoon_dataset, checkpoint_store, warehouse):
        connector = FakeConnector(garoon_dataset, fail_at_call=1)

        result = await _runner(connector, checkpoint_store, warehouse).run(
            ETLRequest(source=SourceSystem.GAROON)
        )

        assert result.status == "error"
        assert result.message == "garoon API request failed: 503"
        assert "employees_unified" not in warehouse.tables
        assert checkpoint_store.writes == []

    @pytest.mark.asyncio
    async def test_duplicates_are_merged_before_load(self, checkpoint_store, warehouse):
        raw = [
            {"employee_id": "EMP001", "full_name": "Taro Tanaka", "department": "Sales"},
            {"employee_id": "EMP001", "full_name": None, "hourly_wage": "1500"},
        ]
        runner = _runner(FakeConnector(raw, source=SourceSystem.JOBCAN), checkpoint_store, warehouse)

        result = await runner.run(ETLRequest(source=SourceSystem.JOBCAN))

        assert result.records_processed == 2
        assert result.records_inserted == 1
        [row] = warehouse.tables["employees_unified"]
        assert row["full_name"] == "Taro Tanaka"
        assert row["hourly_wage"] == 1500.0
        assert row["merged_records_count"] == 2

    @pytest.mark.asyncio
    async def test_reset(self, checkpoint_store, warehouse):
        await checkpoint_store.put_cursor(
            "garoon_sync",
            ExtractionCursor(source="garoon", offset=500, total_processed=480, has_more_data=False),
        )
        connector = FakeConnector([])

        result = await _runner(connector, checkpoint_store, warehouse).run(
            ETLRequest(source=SourceSystem.GAROON, reset=True)
        )

        assert result.status == "success"
        assert result.message == "ETL state reset to beginning"
        cursor = checkpoint_store.cursors["garoon_sync"]
        assert (cursor.offset, cursor.total_processed, cursor.has_more_data) == (0, 0, True)
        assert connector.calls == []

    @pytest.mark.asyncio
    async def test_reset_without_source_rewinds_every_source(self, checkpoint_store, warehouse):
        await _runner(FakeConnector([]), checkpoint_store, warehouse).run(ETLRequest(reset=True))

        assert set(checkpoint_store.cursors) == {f"{s.value}_sync" for s in SourceSystem}

    @pytest.mark.asyncio
    async def test_connection_test_does_not_extract(self, checkpoint_store, warehouse):
        connector = FakeConnector([{"employee_id": "E1"}], reachable=False)

        result = await _runner(connector, checkpoint_store, warehouse).run(
            ETLRequest(source=SourceSystem.GAROON, test=True)
        )

        assert result.status == "error"
        assert result.message == "garoon connection failed"
        assert connector.calls == []

    @pytest.mark.asyncio
    async def test_no_source_is_a_liveness_check(self, checkpoint_store, warehouse):
        result = await _runner(FakeConnector([]), checkpoint_store, warehouse).run(ETLRequest())

        assert result.status == "success"
        assert result.message == "ETL function is working"

    @pytest.mark.asyncio
    async def test_configuration_error_before_io(self, checkpoint_store, warehouse):
        def factory(source):
            raise ConfigurationError("Missing credentials for smarthr: SMARTHR_API_TOKEN")

        runner = ETLRunner(checkpoint_store, warehouse, connector_factory=factory, config=_config())

        result = await runner.run(ETLRequest(source=SourceSystem.SMARTHR))

        assert result.status == "error"
        assert result.message == "Missing credentials for smarthr: SMARTHR_API_TOKEN"
        assert checkpoint_store.cursors == {}

    @pytest.mark.asyncio
    async def test_strict_validation_quarantines(self, checkpoint_store, warehouse):
        raw = [{"employee_id": "EMP001"}, {"employee_id": "EMP002", "email_address": "broken"}]
        runner = _runner(FakeConnector(raw), checkpoint_store, warehouse, STRICT_VALIDATION=True)

        result = await runner.run(ETLRequest(source=SourceSystem.GAROON))

        assert result.records_processed == 2
        assert result.records_inserted == 1

    @pytest.mark.asyncio
    async def test_run_log_receives_quality_summary(self, garoon_dataset, checkpoint_store, warehouse):
        run_log = RecordingRunLog()
        runner = _runner(FakeConnector(garoon_dataset[:5]), checkpoint_store, warehouse, run_log=run_log)

        await runner.run(ETLRequest(source=SourceSystem.GAROON))

        [(request, result, data_quality)] = run_log.entries
        assert result.status == "success"
        assert data_quality["total_records"] == 5
        assert data_quality["duplicate_count"] == 0
        assert data_quality["validity_score"] == 100.0
