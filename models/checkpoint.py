from sqlalchemy import Column, Integer, String, DateTime, Boolean, BigInteger
from datetime import datetime, timezone
from models.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ETLState(Base):
    """
    Resumption cursor per source system.

    Purpose:
    - Resume paginated extraction from the last committed offset
    - Stop extracting once a source reports exhaustion
    - Survive crashes: only written after a batch is loaded

    Design:
    - One row per process (``<source>_sync``)
    - ``has_more_data = False`` parks the source until an explicit reset
    """
    __tablename__ = "etl_state"

    id = Column(Integer, primary_key=True, autoincrement=True)
    process_name = Column(String(100), nullable=False, unique=True, index=True)

    current_offset = Column(BigInteger, nullable=False, default=0)
    total_processed = Column(BigInteger, nullable=False, default=0)
    has_more_data = Column(Boolean, nullable=False, default=True)

    last_updated = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
