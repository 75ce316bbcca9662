"""
Derived views over a master snapshot.

Every function here is pure: it reads the snapshot, never mutates it, does
no I/O, and returns the same output for the same input.  Malformed fields
are normalised (see records.models) rather than raising.
"""

from typing import Any, Dict, List, Optional, Sequence

from exceptions import UnknownViewError
from records.models import (
    CATEGORIES,
    STATUSES,
    V1_RANGES,
    Record,
    in_range,
    normalize_category,
    normalize_status,
    numeric_field,
)

VIEW_VERSION1 = "version1"
VIEW_VERSION2 = "version2"
VIEW_STATUS = "status"
VIEW_STATS = "stats"

VIEW_KINDS = (VIEW_VERSION1, VIEW_VERSION2, VIEW_STATUS, VIEW_STATS)

# View kinds that accept a parameter
PARAMETERIZED_VIEWS = (VIEW_STATUS,)


def derive_version1(records: Sequence[Record]) -> List[Record]:
    return [record for record in records if in_range(record, "v1")]


def derive_version2(records: Sequence[Record]) -> List[Record]:
    return [record for record in records if in_range(record, "v2")]


def derive_status_filter(records: Sequence[Record], status: str) -> List[Record]:
    """Records whose raw status equals the given one."""
    return [record for record in records if record.get("status") == status]


def derive_status_buckets(records: Sequence[Record]) -> Dict[str, Any]:
    """
    Group records by status in a single pass.

    Returns ``{"counts": {<status>: n, ..., "total": n}, "items": {<status>: [records]}}``.
    Missing or unrecognised statuses land in "unknown"; total counts every record.
    """
    counts: Dict[str, int] = {status: 0 for status in STATUSES}
    items: Dict[str, List[Record]] = {status: [] for status in STATUSES}
    total = 0

    for record in records:
        status = normalize_status(record.get("status"))
        counts[status] += 1
        items[status].append(record)
        total += 1

    counts["total"] = total
    return {"counts": counts, "items": items}


def compute_percentages(counts: Dict[str, int], keys: Sequence[str]) -> Dict[str, str]:
    """
    Share of each bucket as a one-decimal string ("50.0").

    A zero total yields "0.0" for every bucket.
    """
    total = counts.get("total", 0)
    if not total:
        return {key: "0.0" for key in keys}
    return {key: f"{counts.get(key, 0) / total * 100:.1f}" for key in keys}


def derive_category_counts(records: Sequence[Record]) -> Dict[str, int]:
    counts: Dict[str, int] = {category: 0 for category in CATEGORIES}
    for record in records:
        counts[normalize_category(record.get("category"))] += 1
    counts["total"] = len(records)
    return counts


def derive_v1_ranges(records: Sequence[Record]) -> Dict[str, Dict[str, int]]:
    """
    Count statuses per fixed v1 range.

    Records with no v1, or a v1 outside every range, are left out.
    """
    ranges: Dict[str, Dict[str, int]] = {
        label: {status: 0 for status in STATUSES} for label, _, _ in V1_RANGES
    }

    for record in records:
        v1 = numeric_field(record, "v1")
        if v1 is None:
            continue
        for label, low, high in V1_RANGES:
            if low <= v1 <= high:
                ranges[label][normalize_status(record.get("status"))] += 1
                break

    return ranges


def derive_scatter(records: Sequence[Record]) -> List[Dict[str, Any]]:
    """One {x: v1, y: v2, status, name} point per record carrying both axes."""
    points = []
    for record in records:
        v1 = numeric_field(record, "v1")
        v2 = numeric_field(record, "v2")
        if v1 is None or v2 is None:
            continue
        points.append({
            "x": v1,
            "y": v2,
            "status": normalize_status(record.get("status")),
            "name": record.get("name"),
        })
    return points


def derive_stats(records: Sequence[Record]) -> Dict[str, Any]:
    """Everything the statistics page and its charts need."""
    buckets = derive_status_buckets(records)
    category_counts = derive_category_counts(records)

    return {
        "counts": buckets["counts"],
        "percentages": compute_percentages(buckets["counts"], STATUSES),
        "items": buckets["items"],
        "v1Ranges": derive_v1_ranges(records),
        "v1v2Data": derive_scatter(records),
        "categoryCounts": category_counts,
        "categoryPercentages": compute_percentages(category_counts, CATEGORIES),
    }


def derive(records: Sequence[Record], view_kind: str, param: Optional[str] = None) -> Any:
    """
    Compute a named view from a master snapshot.

    Raises:
        UnknownViewError: view_kind is not one of VIEW_KINDS
    """
    if view_kind == VIEW_VERSION1:
        return derive_version1(records)
    if view_kind == VIEW_VERSION2:
        return derive_version2(records)
    if view_kind == VIEW_STATUS:
        if param is not None:
            return derive_status_filter(records, param)
        return derive_status_buckets(records)
    if view_kind == VIEW_STATS:
        return derive_stats(records)
    raise UnknownViewError(view_kind)
