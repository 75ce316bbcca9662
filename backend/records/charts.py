"""Chart-ready shapes built from the stats view."""

from typing import Any, Dict, List

from records.models import CATEGORIES, STATUSES, V1_RANGES

CHART_KINDS = ("pie", "bar", "scatter")


def pie_chart(stats: Dict[str, Any]) -> Dict[str, int]:
    """Category counts without the total."""
    counts = stats.get("categoryCounts", {})
    return {category: counts.get(category, 0) for category in CATEGORIES}


def bar_chart(stats: Dict[str, Any]) -> Dict[str, Any]:
    """Status counts per v1 range; statuses with no records are skipped."""
    ranges = stats.get("v1Ranges", {})
    labels = [label for label, _, _ in V1_RANGES]

    datasets: List[Dict[str, Any]] = []
    for status in STATUSES:
        data = [ranges.get(label, {}).get(status, 0) for label in labels]
        if any(data):
            datasets.append({"label": status.capitalize(), "status": status, "data": data})

    return {"labels": labels, "datasets": datasets}


def scatter_chart(stats: Dict[str, Any]) -> Dict[str, Any]:
    return {"items": stats.get("v1v2Data", [])}


CHART_BUILDERS = {
    "pie": pie_chart,
    "bar": bar_chart,
    "scatter": scatter_chart,
}
