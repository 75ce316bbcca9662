"""
Record model helpers.

Records are plain dicts as returned by the backing store
(``{"id", "name", "status", "category", "v1", "v2", ...}``).  They are
read-only here; normalisation only affects how a record is bucketed.
"""

from typing import Any, Dict, Mapping, Optional, Tuple

from pydantic import BaseModel

Record = Dict[str, Any]

STATUSES: Tuple[str, ...] = (
    "deceased",
    "active",
    "incarcerated",
    "redacted",
    "unknown",
    "captured",
)
DEFAULT_STATUS = "unknown"

CATEGORIES: Tuple[str, ...] = ("Male", "Female", "Company", "Group")
DEFAULT_CATEGORY = "Male"

# Inclusive v1 bounds of the master query and the version lists
V1_MIN = 0
V1_MAX = 200

# (label, low, high), inclusive
V1_RANGES: Tuple[Tuple[str, int, int], ...] = (
    ("0-50", 0, 50),
    ("51-100", 51, 100),
    ("101-150", 101, 150),
    ("151-200", 151, 200),
)

UPDATABLE_FIELDS: Tuple[str, ...] = ("name", "status", "category", "v1", "v2")


def normalize_status(value: Any) -> str:
    """Map a raw status onto the closed set, defaulting to 'unknown'."""
    if isinstance(value, str):
        status = value.strip().lower()
        if status in STATUSES:
            return status
    return DEFAULT_STATUS


def normalize_category(value: Any) -> str:
    """Map a raw category onto the closed set, defaulting to 'Male'."""
    if value in CATEGORIES:
        return value
    return DEFAULT_CATEGORY


def numeric_field(record: Mapping[str, Any], field: str) -> Optional[float]:
    """Return record[field] if it is a real number, else None."""
    value = record.get(field)
    # bool is an int subclass but never a valid axis value
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


def in_range(record: Mapping[str, Any], field: str, low: int = V1_MIN, high: int = V1_MAX) -> bool:
    value = numeric_field(record, field)
    return value is not None and low <= value <= high


def clean_item_update(data: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """
    Keep only updatable, non-null fields; trim the name.

    Returns an empty dict when nothing usable remains.
    """
    if not isinstance(data, Mapping):
        return {}

    clean: Dict[str, Any] = {}
    for field in UPDATABLE_FIELDS:
        value = data.get(field)
        if value is None:
            continue
        clean[field] = str(value).strip() if field == "name" else value
    return clean


class ItemUpdate(BaseModel):
    """Admin item update payload."""
    name: Optional[str] = None
    status: Optional[str] = None
    category: Optional[str] = None
    v1: Optional[int] = None
    v2: Optional[int] = None
