from ingestion.transformers.normalizer import DataTransformer, TransformOutcome
from ingestion.transformers.merge import merge_duplicates
from ingestion.transformers.validation import validate_record, ValidationResult

__all__ = [
    "DataTransformer",
    "TransformOutcome",
    "merge_duplicates",
    "validate_record",
    "ValidationResult",
]
