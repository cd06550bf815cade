"""
Pydantic schemas passed between pipeline stages and returned to callers
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Dict, Any
from datetime import datetime, timezone
from models.base import SourceSystem, AlertSeverity


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ============================================================================
# Extraction
# ============================================================================

class ExtractionCursor(BaseModel):
    """Persisted per-source resumption state"""
    source: str
    offset: int = Field(default=0, ge=0)
    total_processed: int = Field(default=0, ge=0)
    has_more_data: bool = True
    last_updated: datetime = Field(default_factory=utcnow)

    @classmethod
    def initial(cls, source: str) -> "ExtractionCursor":
        return cls(source=source)


class Page(BaseModel):
    """One page of raw records returned by a connector"""
    records: List[Dict[str, Any]] = Field(default_factory=list)
    has_next: bool = False


class ExtractionResult(BaseModel):
    """
    Outcome of one bounded extraction run.

    ``cursor`` is the pending cursor; it is only persisted once the
    extracted records have been loaded.
    """
    records: List[Dict[str, Any]] = Field(default_factory=list)
    cursor: ExtractionCursor
    pages_fetched: int = 0
    capped: bool = False
    skipped: bool = False


# ============================================================================
# Trigger
# ============================================================================

class ETLRequest(BaseModel):
    """Request accepted by the pipeline entry point"""
    source: Optional[SourceSystem] = None
    target: str = "bigquery"
    test: bool = False
    reset: bool = False


class ETLResult(BaseModel):
    """Structured status returned for every invocation"""
    status: str
    message: str
    source: Optional[str] = None
    target: Optional[str] = None
    records_processed: int = 0
    records_inserted: int = 0
    total_processed: int = 0
    has_more_data: bool = False
    next_offset: Optional[int] = None
    timestamp: datetime = Field(default_factory=utcnow)


# ============================================================================
# Quality
# ============================================================================

class Alert(BaseModel):
    """Single data quality finding"""
    type: str
    severity: AlertSeverity
    message: str
    source_system: Optional[str] = None
    metric_value: Optional[float] = None

    model_config = ConfigDict(use_enum_values=True)


class QualityReport(BaseModel):
    """Snapshot produced by one quality assessment run"""
    timestamp: datetime = Field(default_factory=utcnow)
    alerts: List[Alert] = Field(default_factory=list)

    @property
    def alerts_count(self) -> int:
        return len(self.alerts)
