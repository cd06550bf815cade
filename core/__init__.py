"""
Core utilities and configuration for the workforce ETL system.

This package provides foundational components used throughout the pipeline:

Modules:
    config: Application configuration and environment variable management
    database: Database engine and session management
    exceptions: Custom exception hierarchy for error handling
    logging: Logging configuration and utilities

Usage:
    from core.config import settings
    from core.database import async_session_maker, build_engine
    from core.exceptions import TransientFetchError, LoadError
    from core.logging import setup_logging
"""

__all__ = [
    "settings",
    "build_engine",
    "build_session_maker",
    "setup_logging",
    # Exceptions
    "ETLException",
    "ConfigurationError",
    "ExtractionError",
    "TransientFetchError",
    "ConnectorResponseError",
    "TransformationError",
    "ValidationWarning",
    "LoadError",
    "StagingTableError",
    "UpsertError",
    "CheckpointError",
    "NotificationError",
]
