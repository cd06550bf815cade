"""
Custom exceptions for the workforce ETL pipeline with structured error context.

Every exception carries a context dictionary so that failures can be logged
and surfaced to the invocation caller without losing the details of which
source, page, batch or table was involved.

Exception Hierarchy:
    ETLException (base)
    ├── ConfigurationError
    ├── ExtractionError
    │   ├── TransientFetchError
    │   └── ConnectorResponseError
    ├── TransformationError
    │   └── ValidationWarning
    ├── LoadError
    │   ├── StagingTableError
    │   └── UpsertError
    ├── CheckpointError
    └── NotificationError
"""

from typing import Optional, Dict, Any
from datetime import datetime, timezone


class ETLException(Exception):
    """
    Base exception for all ETL-related errors.

    Attributes:
        message: Human-readable error message
        context: Additional context information (source, batch, table, etc.)
        original_exception: The original exception that was caught (if any)
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        self.message = message
        self.context = context or {}
        self.original_exception = original_exception
        self.timestamp = datetime.now(timezone.utc)

        self.context["error_timestamp"] = self.timestamp.isoformat()

        super().__init__(message)
        if original_exception:
            self.__cause__ = original_exception

    def __str__(self) -> str:
        """Format error message with context."""
        base_msg = f"{self.__class__.__name__}: {self.message}"

        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base_msg += f" | Context: {context_str}"

        if self.original_exception:
            base_msg += f" | Caused by: {type(self.original_exception).__name__}: {str(self.original_exception)}"

        return base_msg

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/storage."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "original_error": str(self.original_exception) if self.original_exception else None
        }


# ============================================================================
# Configuration Errors
# ============================================================================

class ConfigurationError(ETLException):
    """
    Raised before any I/O when the pipeline cannot be assembled.

    Context should include:
        - source_system: The source being configured
        - missing: Name of the missing mapping, setting or credential
    """
    pass


# ============================================================================
# Extraction Errors
# ============================================================================

class ExtractionError(ETLException):
    """Base exception for data extraction failures."""
    pass


class TransientFetchError(ExtractionError):
    """
    Network failure, timeout or non-2xx response from a connector.

    Never retried inside an invocation; the persisted cursor lets a later
    invocation resume from the same page range.

    Context should include:
        - source_system: Connector source
        - url: The endpoint that failed
        - status_code: HTTP status code (if applicable)
        - offset: Cursor offset of the failing page
    """
    pass


class ConnectorResponseError(ExtractionError):
    """
    Connector answered but the body could not be interpreted as a page.

    Context should include:
        - url: The endpoint that answered
        - response_body: Response body (truncated)
    """
    pass


# ============================================================================
# Transformation Errors
# ============================================================================

class TransformationError(ETLException):
    """Base exception for data transformation failures."""
    pass


class ValidationWarning(TransformationError):
    """
    A transformed record failed one or more validation rules.

    Context should include:
        - record_id: Provenance id of the transformed record
        - errors: List of rule failure messages
    """
    pass


# ============================================================================
# Load Errors
# ============================================================================

class LoadError(ETLException):
    """
    Base exception for warehouse load failures.

    Context should include:
        - table_name: Target table
        - batch_index: Index of the failing batch
        - rows_committed: Rows committed by earlier batches of the same run
    """
    pass


class StagingTableError(LoadError):
    """Creating or filling the per-batch staging table failed."""
    pass


class UpsertError(LoadError):
    """The set-based staging-to-target upsert failed."""
    pass


# ============================================================================
# Checkpoint Errors
# ============================================================================

class CheckpointError(ETLException):
    """
    Exception raised when checkpoint management fails.

    Context should include:
        - process_name: Checkpoint key
        - operation: Operation that failed (read, write, reset)
    """
    pass


# ============================================================================
# Notification Errors
# ============================================================================

class NotificationError(ETLException):
    """Alert delivery failed. Logged by callers, never fatal."""
    pass
