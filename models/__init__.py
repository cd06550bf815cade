"""
SQLAlchemy ORM models for pipeline bookkeeping tables.

Models:
    base: Declarative base and shared enums (SourceSystem, ETLStatus, AlertSeverity)
    checkpoint: Per-source extraction cursor (``etl_state``)
    etl_run: Per-invocation execution log (``etl_execution_log``)

The warehouse tables themselves (``employees_unified``,
``data_quality_alerts``) are declared as column specs in
``schemas.table_schemas`` and created on demand by the warehouse binding.

Usage:
    from models import ETLState, ETLRun
    from models.base import SourceSystem, ETLStatus
"""

from models.base import Base, SourceSystem, ETLStatus, AlertSeverity
from models.checkpoint import ETLState
from models.etl_run import ETLRun

__all__ = [
    "Base",
    "SourceSystem",
    "ETLStatus",
    "AlertSeverity",
    "ETLState",
    "ETLRun",
]
