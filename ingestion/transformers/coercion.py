"""
Type-directed value coercion shared by the transformer, validator and merger
"""

from datetime import date, datetime, timezone
from typing import Any, Optional
import math

from dateutil import parser as date_parser


DATE_FIELDS = frozenset({"hire_date", "birth_date", "created_at", "updated_at", "processed_at"})
NUMBER_FIELD_MARKERS = ("salary", "wage", "allowance", "deduction", "hours", "amount")


def is_date_field(field_name: str) -> bool:
    return field_name in DATE_FIELDS or "date" in field_name or "time" in field_name


def is_number_field(field_name: str) -> bool:
    return any(marker in field_name for marker in NUMBER_FIELD_MARKERS)


def parse_datetime(value: Any) -> Optional[datetime]:
    """
    Parse a date-ish value leniently.

    Accepts datetimes, dates, epoch milliseconds and any string
    python-dateutil understands. Naive values are taken as UTC. Returns
    None when the value cannot be interpreted.
    """
    if value is None or value == "" or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    else:
        text = str(value).strip()
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            try:
                parsed = date_parser.parse(text)
            except (ValueError, OverflowError, TypeError):
                return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)

    # Offsets can push year 1 or 9999 outside the representable UTC range
    try:
        return parsed.astimezone(timezone.utc)
    except (OverflowError, ValueError):
        return None


def to_iso_timestamp(value: Any) -> Optional[str]:
    """Render a parsable date as ``YYYY-MM-DDTHH:MM:SS.mmmZ``"""
    parsed = parse_datetime(value)
    if parsed is None:
        return None
    millis = parsed.microsecond // 1000
    return f"{parsed.year:04d}-{parsed:%m-%dT%H:%M:%S}.{millis:03d}Z"


def parse_number(value: Any) -> Optional[float]:
    """Numbers pass through, strings are parsed as float, anything else is None"""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        try:
            parsed = float(value.strip())
        except ValueError:
            return None
        return parsed if math.isfinite(parsed) else None
    return None


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)
