from sqlalchemy.orm import declarative_base
import enum

Base = declarative_base()


# ============================================================================
# ENUMS
# ============================================================================

class SourceSystem(str, enum.Enum):
    """External platforms feeding the unified employee table"""
    GAROON = "garoon"
    SMARTHR = "smarthr"
    JOBCAN = "jobcan"
    PCA = "pca"
    SHEETS_HR = "sheets_hr"


class ETLStatus(str, enum.Enum):
    """ETL run status"""
    PENDING = "pending"
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"


class AlertSeverity(str, enum.Enum):
    """Data quality alert severity"""
    WARNING = "warning"
    ERROR = "error"
