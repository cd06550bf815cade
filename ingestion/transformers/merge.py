"""
Collapse records that share an identity key into one record.

Each field is combined by a policy from ``FIELD_POLICIES``; fields without
an entry use ``first_non_null``. Merging never mutates its inputs.
"""

from typing import Any, Callable, Dict, List, Mapping, Sequence

from ingestion.transformers.coercion import parse_datetime
from schemas.normalized import IDENTITY_KEY, UnifiedRecord

MergePolicy = Callable[[Any, Any], Any]


def first_non_null(accumulated: Any, incoming: Any) -> Any:
    return accumulated if accumulated is not None else incoming


def latest_by_timestamp(accumulated: Any, incoming: Any) -> Any:
    if accumulated is None:
        return incoming
    if incoming is None:
        return accumulated

    acc_ts = parse_datetime(accumulated)
    inc_ts = parse_datetime(incoming)
    if inc_ts is not None and (acc_ts is None or inc_ts > acc_ts):
        return incoming
    return accumulated


FIELD_POLICIES: Dict[str, MergePolicy] = {
    "processed_at": latest_by_timestamp,
}


def merge_pair(
    left: UnifiedRecord,
    right: UnifiedRecord,
    policies: Mapping[str, MergePolicy] = FIELD_POLICIES,
) -> UnifiedRecord:
    """
    Combine two records field by field, returning a new record.

    Only fields set on either side are carried, so the result keeps the
    same notion of "present" as its inputs.
    """
    present = left.model_fields_set | right.model_fields_set

    merged = {
        name: policies.get(name, first_non_null)(getattr(left, name), getattr(right, name))
        for name in UnifiedRecord.model_fields
        if name in present
    }
    return UnifiedRecord(**merged)


def merge_group(
    group: Sequence[UnifiedRecord],
    policies: Mapping[str, MergePolicy] = FIELD_POLICIES,
) -> UnifiedRecord:
    """Fold a duplicate group left to right; singletons are returned as-is"""
    if not group:
        raise ValueError("Cannot merge an empty group")
    if len(group) == 1:
        return group[0]

    merged = group[0]
    for record in group[1:]:
        merged = merge_pair(merged, record, policies)

    sources = sorted({r.source_system for r in group if r.source_system})
    return merged.model_copy(update={
        "merged_records_count": len(group),
        "source_systems": ",".join(sources),
    })


def group_by_identity(records: Sequence[UnifiedRecord]) -> List[List[UnifiedRecord]]:
    """Group by identity key in first-seen order; keyless records stay alone"""
    groups: Dict[Any, List[UnifiedRecord]] = {}
    for index, record in enumerate(records):
        key = getattr(record, IDENTITY_KEY)
        if not key:
            key = ("__no_identity__", index)
        groups.setdefault(key, []).append(record)
    return list(groups.values())


def merge_duplicates(
    records: Sequence[UnifiedRecord],
    policies: Mapping[str, MergePolicy] = FIELD_POLICIES,
) -> List[UnifiedRecord]:
    """Return one record per identity key"""
    return [merge_group(group, policies) for group in group_by_identity(records)]
