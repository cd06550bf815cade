"""
Rule-driven, field-by-field validation of unified records.

Rules are a closed set of small immutable types, each carrying only the
parameters it needs, evaluated by a single dispatch function. Validation is
pure: the same rules and input always produce the same result.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union
import re

from ingestion.transformers.coercion import is_number, parse_datetime

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


@dataclass(frozen=True)
class Required:
    pass


@dataclass(frozen=True)
class MinLength:
    min_length: int


@dataclass(frozen=True)
class EmailFormat:
    pattern: "re.Pattern[str]" = EMAIL_PATTERN


@dataclass(frozen=True)
class NumericRange:
    min: Optional[float] = None


@dataclass(frozen=True)
class DateFormat:
    pass


Rule = Union[Required, MinLength, EmailFormat, NumericRange, DateFormat]


VALIDATION_RULES: Dict[str, Tuple[Rule, ...]] = {
    "employee_id": (Required(), MinLength(1)),
    "email": (EmailFormat(),),
    "hire_date": (DateFormat(),),
    "annual_salary": (NumericRange(min=0),),
    "monthly_salary": (NumericRange(min=0),),
}


@dataclass
class ValidationResult:
    is_valid: bool
    errors: List[str] = field(default_factory=list)


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value == "")


def evaluate_rule(rule: Rule, field_name: str, value: Any) -> Optional[str]:
    """Return an error message when ``value`` breaks ``rule``, else None"""
    if isinstance(rule, Required):
        if _is_missing(value):
            return f"Required field {field_name} is missing"
        return None

    if isinstance(rule, EmailFormat):
        if not isinstance(value, str) or not rule.pattern.match(value):
            return f"Invalid email format for field {field_name}: {value}"
        return None

    if isinstance(rule, NumericRange):
        if not is_number(value):
            return f"Field {field_name} should be a number, got {type(value).__name__}"
        if rule.min is not None and value < rule.min:
            return f"Field {field_name} value {value} is below minimum {rule.min}"
        return None

    if isinstance(rule, DateFormat):
        if parse_datetime(value) is None:
            return f"Invalid date format for field {field_name}: {value}"
        return None

    if isinstance(rule, MinLength):
        if hasattr(value, "__len__") and len(value) < rule.min_length:
            return f"Field {field_name} length {len(value)} is below minimum {rule.min_length}"
        return None

    raise TypeError(f"Unknown validation rule: {rule!r}")


def validate_record(
    record: Union[Mapping[str, Any], Any],
    rules: Mapping[str, Tuple[Rule, ...]] = VALIDATION_RULES,
) -> ValidationResult:
    """
    Validate one record against ``rules``.

    A missing required field reports a single error and skips that field's
    remaining rules. Missing optional fields are not checked.
    """
    if hasattr(record, "model_dump"):
        record = record.model_dump()

    errors: List[str] = []

    for field_name, field_rules in rules.items():
        value = record.get(field_name)
        required = any(isinstance(rule, Required) for rule in field_rules)

        if _is_missing(value):
            if required:
                errors.append(f"Required field {field_name} is missing")
            continue

        for rule in field_rules:
            error = evaluate_rule(rule, field_name, value)
            if error:
                errors.append(error)

    return ValidationResult(is_valid=not errors, errors=errors)
