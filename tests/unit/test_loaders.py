"""
Unit tests for the staged upsert loader and the Postgres warehouse binding
"""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest
from sqlalchemy import MetaData
from sqlalchemy.dialects import postgresql

from core.exceptions import LoadError, StagingTableError, UpsertError
from ingestion.loaders.upsert_loader import StagingUpsertLoader, staging_table_name
from ingestion.loaders.warehouse import (
    build_merge_statement,
    build_table,
    coerce_row,
)
from schemas.normalized import UnifiedRecord
from schemas.table_schemas import EMPLOYEES_UNIFIED
from tests.fakes import InMemoryWarehouse


def _records(ids, **fields):
    return [
        UnifiedRecord(
            employee_id=i,
            source_system="garoon",
            processed_at="2024-01-15T10:30:00.000Z",
            record_id=f"garoon_{i}",
            **fields,
        )
        for i in ids
    ]


class TestStagingUpsertLoader:
    """Per-batch staging protocol"""

    @pytest.mark.asyncio
    async def test_batch_protocol_order(self, warehouse):
        loader = StagingUpsertLoader(warehouse, batch_size=500)

        written = await loader.load(_records(["E1", "E2"]), "employees_unified")

        assert written == 2
        ops = [op for op, _ in warehouse.log]
        assert ops == ["ensure_table", "ensure_table", "bulk_insert", "merge_upsert", "drop_table"]

        staging = warehouse.log[1][1]
        assert staging.startswith("employees_unified_staging_")
        assert staging.endswith("_0")
        assert staging not in warehouse.tables
        assert [r["employee_id"] for r in warehouse.tables["employees_unified"]] == ["E1", "E2"]

    @pytest.mark.asyncio
    async def test_batches_get_their_own_staging_tables(self, warehouse):
        loader = StagingUpsertLoader(warehouse, batch_size=2)

        written = await loader.load(_records(["E1", "E2", "E3", "E4", "E5"]), "employees_unified")

        assert written == 5
        staging_tables = [name for op, name in warehouse.log if op == "drop_table"]
        assert [name.rsplit("_", 1)[1] for name in staging_tables] == ["0", "1", "2"]
        assert len({name.rsplit("_", 2)[1] for name in staging_tables}) == 1

    @pytest.mark.asyncio
    async def test_reload_updates_instead_of_duplicating(self, warehouse):
        loader = StagingUpsertLoader(warehouse)

        await loader.load(_records(["E1"], department="Sales"), "employees_unified")
        await loader.load(_records(["E1"], department="HR"), "employees_unified")

        rows = warehouse.tables["employees_unified"]
        assert len(rows) == 1
        assert rows[0]["department"] == "HR"

    @pytest.mark.asyncio
    async def test_upsert_failure_keeps_earlier_batches(self):
        warehouse = InMemoryWarehouse(fail={"merge_upsert": {1}})
        loader = StagingUpsertLoader(warehouse, batch_size=2)

        with pytest.raises(UpsertError) as exc_info:
            await loader.load(_records(["E1", "E2", "E3", "E4"]), "employees_unified")

        assert exc_info.value.context["batch_index"] == 1
        assert exc_info.value.context["rows_committed"] == 2
        assert [r["employee_id"] for r in warehouse.tables["employees_unified"]] == ["E1", "E2"]
        # staging of the failed batch is still dropped
        assert not any("_staging_" in name for name in warehouse.tables)

    @pytest.mark.asyncio
    async def test_staging_failure(self):
        warehouse = InMemoryWarehouse(fail={"bulk_insert": {0}})
        loader = StagingUpsertLoader(warehouse)

        with pytest.raises(StagingTableError):
            await loader.load(_records(["E1"]), "employees_unified")

        assert warehouse.tables["employees_unified"] == []
        assert warehouse.log[-1][0] == "drop_table"

    @pytest.mark.asyncio
    async def test_target_failure_is_a_load_error(self):
        warehouse = InMemoryWarehouse(fail={"ensure_table": {0}})
        loader = StagingUpsertLoader(warehouse)

        with pytest.raises(LoadError):
            await loader.load(_records(["E1"]), "employees_unified")

    @pytest.mark.asyncio
    async def test_drop_failure_is_not_raised(self):
        warehouse = InMemoryWarehouse(fail={"drop_table": {0}})
        loader = StagingUpsertLoader(warehouse)

        assert await loader.load(_records(["E1"]), "employees_unified") == 1

    @pytest.mark.asyncio
    async def test_records_without_identity_are_skipped(self, warehouse):
        records = _records(["E1"]) + [UnifiedRecord(first_name="Nobody", record_id="x")]

        assert await StagingUpsertLoader(warehouse).load(records, "employees_unified") == 1

    @pytest.mark.asyncio
    async def test_empty_input(self, warehouse):
        assert await StagingUpsertLoader(warehouse).load([], "employees_unified") == 0
        assert warehouse.log == []

    def test_staging_table_name(self):
        assert staging_table_name("employees_unified", "ab12cd34", 3) == "employees_unified_staging_ab12cd34_3"


class TestPostgresWarehouseStatements:

    def test_merge_statement(self):
        metadata = MetaData()
        target = build_table("employees_unified", EMPLOYEES_UNIFIED, metadata)
        staging = build_table("employees_unified_staging_ab12cd34_0", EMPLOYEES_UNIFIED, metadata)

        sql = str(build_merge_statement(target, staging, "employee_id").compile(dialect=postgresql.dialect()))

        assert sql.startswith("INSERT INTO employees_unified (employee_id, first_name")
        assert "SELECT employees_unified_staging_ab12cd34_0.employee_id" in sql
        assert "ON CONFLICT (employee_id) DO UPDATE SET" in sql
        assert "first_name = excluded.first_name" in sql
        assert "employee_id = excluded.employee_id" not in sql

    def test_identity_column_is_primary_key(self):
        table = build_table("employees_unified", EMPLOYEES_UNIFIED, MetaData())

        assert [c.name for c in table.primary_key.columns] == ["employee_id"]
        assert table.c.email.nullable is True
        assert table.c.processed_at.nullable is False

    def test_row_coercion(self):
        row = coerce_row(EMPLOYEES_UNIFIED, {
            "employee_id": "E1",
            "hire_date": "2023-01-15T00:00:00.000Z",
            "processed_at": "2024-01-15T10:30:00.000Z",
            "annual_salary": 5000000.0,
            "working_hours": "7.5",
            "merged_records_count": 2,
            "is_active": True,
        })

        assert row["hire_date"] == date(2023, 1, 15)
        assert row["processed_at"] == datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)
        assert row["annual_salary"] == Decimal("5000000.0")
        assert row["working_hours"] == 7.5
        assert row["merged_records_count"] == 2
        assert row["is_active"] is True
        assert row["email"] is None

    def test_early_year_survives_row_coercion(self):
        row = coerce_row(EMPLOYEES_UNIFIED, {"employee_id": "E1", "hire_date": "0099-03-01T00:00:00.000Z"})

        assert row["hire_date"] == date(99, 3, 1)
