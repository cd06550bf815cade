"""
ETL pipeline for the unified employee table.

Modules:
    checkpoint: Persisted per-source extraction cursor
    extraction: Bounded, resumable page runs over a connector
    runner: Orchestrator for one (source, target) invocation
    run_log: Execution log of invocations
    scheduler: APScheduler re-invocation cadence

Subpackages:
    connectors: Per-vendor HTTP page sources
    transformers: Field mapping, coercion, validation and merge
    loaders: Warehouse binding and staged upsert loader

Usage:
    from ingestion.runner import ETLRunner
    from schemas.pipeline import ETLRequest

    runner = ETLRunner(checkpoint_store, warehouse)
    result = await runner.run(ETLRequest(source="garoon"))

Error Handling:
    Components raise the exceptions in core.exceptions; the runner turns
    them into an ETLResult with status "error" and leaves the cursor where
    it was.
"""

__all__ = [
    "ETLRunner",
    "ResumableExtractor",
    "CheckpointStore",
    "PostgresCheckpointStore",
]
