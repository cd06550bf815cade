"""
Pydantic schemas for API request/response models
"""

from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Optional, List
from datetime import datetime

from schemas.pipeline import QualityReport, utcnow


# ============================================================================
# Health Check Schemas
# ============================================================================

class ETLStateInfo(BaseModel):
    """Cursor of one source, as persisted in ``etl_state``"""
    process_name: str
    current_offset: int
    total_processed: int
    has_more_data: bool
    last_updated: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class HealthCheckResponse(BaseModel):
    """Health check response model"""
    status: str = Field("healthy", description="Overall system status: healthy or unhealthy")
    timestamp: datetime = Field(default_factory=utcnow)
    database_connected: bool
    etl_states: List[ETLStateInfo] = Field(default_factory=list)

    @model_validator(mode="after")
    def determine_status(self):
        self.status = "healthy" if self.database_connected else "unhealthy"
        return self

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "status": "healthy",
                "timestamp": "2024-01-15T10:30:00Z",
                "database_connected": True,
                "etl_states": [
                    {
                        "process_name": "garoon_sync",
                        "current_offset": 300,
                        "total_processed": 287,
                        "has_more_data": True,
                        "last_updated": "2024-01-15T10:00:00Z"
                    }
                ]
            }
        }
    )


# ============================================================================
# Quality Check Schemas
# ============================================================================

class QualityCheckResponse(BaseModel):
    """Result of an on-demand data quality run"""
    success: bool
    alerts_count: int = 0
    results: Optional[QualityReport] = None
    error: Optional[str] = None


# ============================================================================
# Webhook Schemas
# ============================================================================

class WebhookResponse(BaseModel):
    status: str = "success"
    message: str = "Webhook received"
    timestamp: datetime = Field(default_factory=utcnow)
    method: Optional[str] = None
    path: Optional[str] = None
