from sqlalchemy import Column, BigInteger, String, Enum, DateTime, Float, Integer, Text, Boolean, Index
from sqlalchemy.dialects.postgresql import UUID, JSONB
from datetime import datetime, timezone
import uuid
from models.base import Base, ETLStatus


class ETLRun(Base):
    """
    Append-only execution log, one row per pipeline invocation.

    Purpose:
    - Audit trail of all ETL runs
    - Counters a caller can use to decide on re-invocation
    - Error tracking and debugging
    """
    __tablename__ = "etl_execution_log"

    id = Column(BigInteger, primary_key=True, autoincrement=True)
    execution_id = Column(UUID(as_uuid=True), default=uuid.uuid4, unique=True, nullable=False, index=True)

    source_system = Column(String(50), nullable=False, index=True)
    target = Column(String(50), nullable=False)

    status = Column(Enum(ETLStatus), default=ETLStatus.PENDING, nullable=False, index=True)
    success = Column(Boolean, nullable=False, default=False)

    start_time = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    end_time = Column(DateTime(timezone=True), nullable=True)
    duration_ms = Column(Integer, nullable=True)

    records_processed = Column(Integer, default=0)
    records_inserted = Column(Integer, default=0)
    total_processed = Column(BigInteger, default=0)
    has_more_data = Column(Boolean, nullable=True)
    next_offset = Column(BigInteger, nullable=True)

    error_message = Column(Text, nullable=True)
    data_quality = Column(JSONB, nullable=True)

    __table_args__ = (
        Index("idx_etl_run_source_start", "source_system", "start_time"),
    )
