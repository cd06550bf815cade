"""
Column declarations for the warehouse tables.

The warehouse binding creates tables from these specs when they are absent
and never alters an existing table. Staging tables reuse the target's columns.
"""

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class ColumnSpec:
    name: str
    type: str  # STRING, DATE, TIMESTAMP, FLOAT, NUMERIC, INTEGER, BOOLEAN
    required: bool = False
    key: bool = False


TableSchema = Tuple[ColumnSpec, ...]


EMPLOYEES_UNIFIED: TableSchema = (
    ColumnSpec("employee_id", "STRING", required=True, key=True),
    ColumnSpec("first_name", "STRING"),
    ColumnSpec("last_name", "STRING"),
    ColumnSpec("full_name", "STRING"),
    ColumnSpec("email", "STRING"),
    ColumnSpec("department", "STRING"),
    ColumnSpec("position", "STRING"),
    ColumnSpec("hire_date", "DATE"),
    ColumnSpec("birth_date", "DATE"),
    ColumnSpec("gender", "STRING"),
    ColumnSpec("employment_type", "STRING"),
    ColumnSpec("working_hours", "FLOAT"),
    ColumnSpec("break_time", "FLOAT"),
    ColumnSpec("annual_salary", "NUMERIC"),
    ColumnSpec("monthly_salary", "NUMERIC"),
    ColumnSpec("hourly_wage", "NUMERIC"),
    ColumnSpec("basic_salary", "NUMERIC"),
    ColumnSpec("allowances", "NUMERIC"),
    ColumnSpec("deductions", "NUMERIC"),
    ColumnSpec("net_salary", "NUMERIC"),
    ColumnSpec("fixed_premium_wage", "NUMERIC"),
    ColumnSpec("employment_insurance", "STRING"),
    ColumnSpec("social_insurance", "STRING"),
    ColumnSpec("spouse_info", "STRING"),
    ColumnSpec("work_schedule", "STRING"),
    ColumnSpec("holidays", "STRING"),
    ColumnSpec("source_system", "STRING", required=True),
    ColumnSpec("source_systems", "STRING"),
    ColumnSpec("processed_at", "TIMESTAMP", required=True),
    ColumnSpec("record_id", "STRING", required=True),
    ColumnSpec("data_version", "INTEGER"),
    ColumnSpec("merged_records_count", "INTEGER"),
    ColumnSpec("is_active", "BOOLEAN"),
)

DATA_QUALITY_ALERTS: TableSchema = (
    ColumnSpec("alert_id", "STRING", required=True, key=True),
    ColumnSpec("timestamp", "TIMESTAMP", required=True),
    ColumnSpec("alert_type", "STRING", required=True),
    ColumnSpec("severity", "STRING", required=True),
    ColumnSpec("message", "STRING", required=True),
    ColumnSpec("source_system", "STRING"),
    ColumnSpec("metric_value", "FLOAT"),
)

ALERTS_TABLE = "data_quality_alerts"


def column_names(schema: TableSchema) -> Tuple[str, ...]:
    return tuple(col.name for col in schema)
