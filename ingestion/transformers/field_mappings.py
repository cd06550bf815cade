"""
Static source-to-unified field mapping table.

Each source maps an ordered list of its native field names onto
UnifiedRecord fields. The table is closed: it is checked against the
UnifiedRecord field set at import time and cannot be changed at runtime.
"""

from types import MappingProxyType
from typing import Mapping, Tuple

from core.exceptions import ConfigurationError
from models.base import SourceSystem
from schemas.normalized import UNIFIED_FIELDS

FieldMapping = Tuple[Tuple[str, str], ...]


_FIELD_MAPPINGS = {
    SourceSystem.GAROON: (
        ("employee_id", "employee_id"),
        ("last_name_kanji", "last_name"),
        ("first_name_kanji", "first_name"),
        ("email_address", "email"),
        ("department_1", "department"),
        ("joining_date", "hire_date"),
        ("work_hours", "working_hours"),
        ("work_type", "employment_type"),
        ("annual_salary", "annual_salary"),
    ),
    SourceSystem.SMARTHR: (
        ("employee_id", "employee_id"),
        ("last_name_katakana", "last_name"),
        ("first_name_katakana", "first_name"),
        ("personal_email", "email"),
        ("department", "department"),
        ("joining_date", "hire_date"),
        ("birth_date", "birth_date"),
        ("gender", "gender"),
        ("working_hours", "working_hours"),
        ("work_type", "employment_type"),
        ("annual_salary", "annual_salary"),
        ("monthly_salary", "monthly_salary"),
        ("employment_insurance_status", "employment_insurance"),
        ("social_insurance_status", "social_insurance"),
    ),
    SourceSystem.JOBCAN: (
        ("employee_id", "employee_id"),
        ("full_name", "full_name"),
        ("department", "department"),
        ("joining_date", "hire_date"),
        ("hourly_wage", "hourly_wage"),
    ),
    SourceSystem.PCA: (
        ("employee_id", "employee_id"),
        ("full_name", "full_name"),
        ("department", "department"),
        ("position", "position"),
        ("basic_salary", "basic_salary"),
        ("allowances", "allowances"),
        ("deductions", "deductions"),
        ("net_salary", "net_salary"),
    ),
    SourceSystem.SHEETS_HR: (
        ("employee_code", "employee_id"),
        ("name", "full_name"),
        ("department", "department"),
        ("position", "position"),
        ("hire_date", "hire_date"),
        ("salary", "monthly_salary"),
    ),
}


def _check_mappings(mappings) -> None:
    known = set(UNIFIED_FIELDS)
    for source, pairs in mappings.items():
        for source_field, target_field in pairs:
            if target_field not in known:
                raise ConfigurationError(
                    f"Field mapping for {source.value} targets unknown field {target_field}",
                    context={"source_system": source.value, "source_field": source_field}
                )


_check_mappings(_FIELD_MAPPINGS)

FIELD_MAPPINGS: Mapping[SourceSystem, FieldMapping] = MappingProxyType(_FIELD_MAPPINGS)


def get_field_mapping(source) -> FieldMapping:
    """Return the mapping for ``source`` or raise ConfigurationError"""
    try:
        key = SourceSystem(source)
    except ValueError:
        raise ConfigurationError(
            f"No field mapping found for {source}_to_unified",
            context={"source_system": str(source), "missing": "field_mapping"}
        )
    mapping = FIELD_MAPPINGS.get(key)
    if not mapping:
        raise ConfigurationError(
            f"No field mapping found for {key.value}_to_unified",
            context={"source_system": key.value, "missing": "field_mapping"}
        )
    return mapping
