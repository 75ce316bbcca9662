"""
Static Fallback Dataset

Pre-shaped demo data served in place of live records while the backing
store reports quota exhaustion.  Loaded once at start-up; can be reloaded
by an operator.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from exceptions import FallbackDatasetError
from records.derivations import derive
from records.models import CATEGORIES, Record

logger = logging.getLogger(__name__)

REQUIRED_KEYS = ("version1", "version2", "stats")
REQUIRED_STATS_KEYS = (
    "counts",
    "percentages",
    "items",
    "v1Ranges",
    "v1v2Data",
    "categoryCounts",
    "categoryPercentages",
)
LIST_KEYS = ("all", "version1", "version2")
OBJECT_STATS_KEYS = (
    "counts",
    "percentages",
    "items",
    "v1Ranges",
    "categoryCounts",
    "categoryPercentages",
)

_MINIMAL_STATUSES = ("deceased", "active", "incarcerated", "redacted", "unknown")


def build_minimal_payload() -> Dict[str, Any]:
    """Hardcoded ten-record dataset used when the file cannot be loaded."""
    return {
        "all": [
            {
                "id": f"dummy_{i}",
                "name": f"Person {i + 1}",
                "v1": i,
                "v2": i + 100,
                "status": _MINIMAL_STATUSES[i % len(_MINIMAL_STATUSES)],
                "category": CATEGORIES[i % len(CATEGORIES)],
            }
            for i in range(10)
        ]
    }


def validate_payload(payload: Any) -> List[str]:
    """
    Check that a payload can stand in for derived views.

    Returns:
        List of problems; empty when the payload is usable
    """
    if not isinstance(payload, dict):
        return ["payload must be a JSON object"]

    problems = []
    for key in REQUIRED_KEYS:
        if key not in payload:
            problems.append(f"missing key: {key}")

    for key in LIST_KEYS:
        if key not in payload:
            continue
        if not isinstance(payload[key], list):
            problems.append(f"{key} must be a list")
        elif not all(isinstance(record, dict) for record in payload[key]):
            problems.append(f"{key} must contain only record objects")

    stats = payload.get("stats")
    if stats is not None:
        if not isinstance(stats, dict):
            problems.append("stats must be an object")
        else:
            for key in REQUIRED_STATS_KEYS:
                if key not in stats:
                    problems.append(f"missing key: stats.{key}")
            for key in OBJECT_STATS_KEYS:
                if key in stats and not isinstance(stats[key], dict):
                    problems.append(f"stats.{key} must be an object")
            points = stats.get("v1v2Data")
            if points is not None:
                if not isinstance(points, list):
                    problems.append("stats.v1v2Data must be a list")
                elif not all(isinstance(point, dict) for point in points):
                    problems.append("stats.v1v2Data must contain only objects")

    return problems


def check_consistency(payload: Dict[str, Any]) -> List[str]:
    """
    Compare the pre-shaped views with what the derivations produce from
    the payload's records.  Only meaningful for a structurally valid payload.
    """
    records = payload.get("all")
    if records is None:
        records = payload.get("version1", [])

    problems = []
    for key in REQUIRED_KEYS:
        if key in payload and payload[key] != derive(records, key):
            problems.append(f"{key} does not match the view derived from the records")
    return problems


def read_payload(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Read and validate a fallback dataset file.

    Raises:
        FallbackDatasetError: unreadable, unparsable or structurally invalid
    """
    path = Path(path)
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise FallbackDatasetError(
            f"Failed to read fallback dataset: {e}", source=str(path)
        ) from e

    problems = validate_payload(payload)
    if problems:
        raise FallbackDatasetError(
            "Fallback dataset is invalid", source=str(path), problems=problems
        )
    return payload


class FallbackDataset:
    """
    In-memory copy of the fallback dataset.

    Usage:
        fallback = FallbackDataset.load(settings.resolved_fallback_data_path)
        records = fallback.all_records()
        stats = fallback.view("stats")
    """

    def __init__(
        self,
        payload: Dict[str, Any],
        source: Optional[str] = None,
        is_minimal: bool = False,
    ):
        self._payload = payload
        self.source = source
        self.is_minimal = is_minimal
        self.loaded_at = datetime.now(timezone.utc)

    @classmethod
    def load(cls, path: Union[str, Path]) -> "FallbackDataset":
        """Load from file, substituting the minimal dataset on any failure."""
        try:
            payload = read_payload(path)
        except FallbackDatasetError as e:
            logger.error(f"{e.message} ({path}); using minimal fallback dataset")
            return cls(build_minimal_payload(), source=str(path), is_minimal=True)

        dataset = cls(payload, source=str(path))
        logger.info(f"Fallback dataset loaded from {path} ({len(dataset.all_records())} records)")
        return dataset

    def reload(self, path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
        """
        Re-read the dataset, replacing the in-memory copy.

        Raises:
            FallbackDatasetError: the previous copy is kept
        """
        source = path or self.source
        if source is None:
            raise FallbackDatasetError("Fallback dataset has no source to reload from")

        payload = read_payload(source)

        self._payload = payload
        self.source = str(source)
        self.is_minimal = False
        self.loaded_at = datetime.now(timezone.utc)
        logger.info(f"Fallback dataset reloaded from {source}")
        return self.info()

    @property
    def payload(self) -> Dict[str, Any]:
        return self._payload

    def all_records(self) -> List[Record]:
        """The "all records" shape, falling back to version1."""
        records = self._payload.get("all")
        if records is None:
            records = self._payload.get("version1", [])
        return records

    def view(self, view_kind: str, param: Optional[str] = None) -> Any:
        """
        Pre-shaped view if the payload carries it, else derived from all records.
        """
        if param is None and view_kind in self._payload:
            return self._payload[view_kind]
        return derive(self.all_records(), view_kind, param)

    def info(self) -> Dict[str, Any]:
        stats = self._payload.get("stats") or {}
        return {
            "available": bool(self.all_records()),
            "source": self.source,
            "is_minimal": self.is_minimal,
            "loaded_at": self.loaded_at.isoformat(),
            "counts": {
                "all": len(self.all_records()),
                "version1": len(self._payload.get("version1", [])),
                "version2": len(self._payload.get("version2", [])),
                "scatter_points": len(stats.get("v1v2Data", [])),
            },
            "has_stats": "stats" in self._payload,
        }
