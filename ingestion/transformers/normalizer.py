"""
Transform raw source records into the unified employee schema
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence, Union
import logging
import secrets
import string

from core.config import settings
from core.exceptions import ValidationWarning
from ingestion.transformers.coercion import (
    is_date_field,
    is_number_field,
    parse_number,
    to_iso_timestamp,
)
from ingestion.transformers.field_mappings import FieldMapping, get_field_mapping
from ingestion.transformers.validation import validate_record
from models.base import SourceSystem
from schemas.normalized import UnifiedRecord

logger = logging.getLogger(__name__)

_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits


@dataclass
class TransformOutcome:
    """Records ready for merge plus the ones held back by strict validation"""
    records: List[UnifiedRecord] = field(default_factory=list)
    quarantined: List[UnifiedRecord] = field(default_factory=list)
    warnings: List[ValidationWarning] = field(default_factory=list)

    @property
    def validation_failures(self) -> int:
        return len(self.warnings)


class DataTransformer:
    """
    Normalize records from every source system into UnifiedRecord.

    Handles:
    - Positional field mapping per source
    - Type-directed coercion (dates, numbers, trimmed strings)
    - Provenance stamping
    - Advisory validation (strict mode quarantines instead)
    """

    def __init__(
        self,
        strict_validation: Optional[bool] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.strict_validation = (
            settings.STRICT_VALIDATION if strict_validation is None else strict_validation
        )
        self.clock = clock

    def transform(
        self,
        data: Union[Dict[str, Any], Sequence[Dict[str, Any]]],
        source: Union[SourceSystem, str],
    ) -> List[UnifiedRecord]:
        """
        Map every raw record of ``source`` to one UnifiedRecord.

        Always returns as many records as it was given; validation failures
        are logged, not dropped.

        Raises:
            ConfigurationError: If ``source`` has no field mapping
        """
        if isinstance(data, dict):
            data = [data]

        mapping = get_field_mapping(source)
        source = SourceSystem(source)
        return [self.transform_record(record, mapping, source) for record in data]

    def transform_batch(
        self,
        data: Sequence[Dict[str, Any]],
        source: Union[SourceSystem, str],
    ) -> TransformOutcome:
        """Transform and partition by validity when strict validation is on"""
        outcome = TransformOutcome()

        for record in self.transform(data, source):
            result = validate_record(record)
            if result.is_valid:
                outcome.records.append(record)
                continue

            warning = ValidationWarning(
                f"Validation warnings for record {record.record_id}",
                context={
                    "record_id": record.record_id,
                    "source_system": record.source_system,
                    "errors": result.errors,
                    "quarantined": self.strict_validation,
                }
            )
            outcome.warnings.append(warning)
            logger.warning(str(warning), extra={"error_context": warning.to_dict()})
            if self.strict_validation:
                outcome.quarantined.append(record)
            else:
                outcome.records.append(record)

        if outcome.quarantined:
            logger.warning(
                f"Quarantined {len(outcome.quarantined)} invalid records from {source}"
            )
        return outcome

    def transform_record(
        self,
        record: Dict[str, Any],
        mapping: FieldMapping,
        source: SourceSystem,
    ) -> UnifiedRecord:
        """Apply ``mapping`` to one raw record and stamp provenance"""
        transformed: Dict[str, Any] = {}

        for source_field, target_field in mapping:
            value = record.get(source_field)
            if value is not None:
                transformed[target_field] = self.transform_value(value, target_field)

        transformed["source_system"] = source.value
        transformed["processed_at"] = to_iso_timestamp(self.clock())
        transformed["record_id"] = self.generate_record_id(source, record)
        transformed["data_version"] = 1

        return UnifiedRecord(**transformed)

    @staticmethod
    def transform_value(value: Any, target_field: str) -> Any:
        """Coerce ``value`` according to the type implied by ``target_field``"""
        if value is None or value == "":
            return None

        if is_date_field(target_field):
            return to_iso_timestamp(value)

        if is_number_field(target_field):
            return parse_number(value)

        if isinstance(value, str):
            return value.strip()

        return value

    def generate_record_id(self, source: SourceSystem, record: Dict[str, Any]) -> str:
        employee_id = (
            record.get("employee_id")
            or record.get("emp_code")
            or record.get("code")
            or "unknown"
        )
        timestamp = int(self.clock().timestamp() * 1000)
        suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(5))
        return f"{source.value}_{employee_id}_{timestamp}_{suffix}"
