"""
Pydantic schemas for data validation and serialization.

Schemas:
    normalized: UnifiedRecord, the canonical employee record
    pipeline: Cursor, page, request/result and quality report models
    table_schemas: Warehouse column declarations
    api: API endpoint response models
"""

__all__ = [
    "UnifiedRecord",
    "ExtractionCursor",
    "Page",
    "ETLRequest",
    "ETLResult",
    "Alert",
    "QualityReport",
]
