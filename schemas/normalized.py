"""
Pydantic schema for the unified employee record
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, Any
import json


class UnifiedRecord(BaseModel):
    """
    Canonical, source-agnostic employee record.

    Every descriptive field is optional: sources populate different
    subsets and the merge step fills gaps across them. Dates are kept as
    ISO-8601 strings until the warehouse binding converts them to native
    column types.
    """

    # Identity
    employee_id: Optional[str] = None

    # Names and contact
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    full_name: Optional[str] = None
    email: Optional[str] = None

    # Organisation
    department: Optional[str] = None
    position: Optional[str] = None
    employment_type: Optional[str] = None

    # Dates
    hire_date: Optional[str] = None
    birth_date: Optional[str] = None

    # Personal
    gender: Optional[str] = None
    spouse_info: Optional[str] = None

    # Working time
    working_hours: Optional[float] = None
    break_time: Optional[float] = None
    work_schedule: Optional[str] = None
    holidays: Optional[str] = None

    # Compensation
    annual_salary: Optional[float] = None
    monthly_salary: Optional[float] = None
    hourly_wage: Optional[float] = None
    basic_salary: Optional[float] = None
    allowances: Optional[float] = None
    deductions: Optional[float] = None
    net_salary: Optional[float] = None
    fixed_premium_wage: Optional[float] = None

    # Insurance
    employment_insurance: Optional[str] = None
    social_insurance: Optional[str] = None

    # Provenance
    source_system: Optional[str] = None
    source_systems: Optional[str] = None
    processed_at: Optional[str] = None
    record_id: Optional[str] = None
    data_version: int = 1
    merged_records_count: int = Field(default=1, ge=1)
    is_active: bool = True

    model_config = ConfigDict(extra="ignore", frozen=False)

    @field_validator(
        "employee_id", "first_name", "last_name", "full_name", "email",
        "department", "position", "employment_type", "gender", "spouse_info",
        "work_schedule", "holidays", "employment_insurance", "social_insurance",
        mode="before",
    )
    @classmethod
    def stringify_scalars(cls, v: Any) -> Optional[str]:
        """Sources send codes as numbers and nested blobs as objects"""
        if v is None or isinstance(v, str):
            return v
        if isinstance(v, (dict, list)):
            return json.dumps(v, ensure_ascii=False, sort_keys=True)
        return str(v)


UNIFIED_FIELDS = tuple(UnifiedRecord.model_fields.keys())

IDENTITY_KEY = "employee_id"
