"""
HTML fragments for HTMX requests.

Requests carrying ``HX-Request: true`` get these partials instead of JSON.
Every record value is passed through html.escape() before it is embedded.
"""

import html
from typing import Any, Dict, Iterable, Mapping

from records.models import STATUSES, normalize_status

HTMX_HEADER = "hx-request"


def wants_fragment(headers: Mapping[str, str]) -> bool:
    return headers.get(HTMX_HEADER, "").lower() == "true"


def _sanitize(value: Any) -> str:
    if value is None:
        return ""
    return html.escape(str(value), quote=True)


def render_item(record: Mapping[str, Any]) -> str:
    """One list entry; redacted records hide name and status."""
    v1 = _sanitize(record.get("v1"))
    name = _sanitize(record.get("name"))
    status = normalize_status(record.get("status"))

    guide = f'<span class="guide" aria-label="Item number {v1}">#{v1}.</span>'
    if status == "redacted":
        body = '<span class="item-redacted" aria-label="Redacted information" role="img"></span>'
    else:
        body = (
            f'<span><span class="name">{name}</span>'
            f'<span class="dash" aria-hidden="true">&ndash;</span>'
            f'<span class="status {status}">{status}</span></span>'
        )

    return (
        f'<article class="list-item" id="item-{v1}" data-item-status="{status}">'
        f'<header class="item-header">{guide}{body}</header>'
        f'</article>'
    )


def render_item_list(records: Iterable[Mapping[str, Any]]) -> str:
    items = [render_item(record) for record in records]
    if not items:
        return (
            '<div class="empty-state-message">'
            '<div class="empty-state-title">No Data Available</div>'
            '<p>No items found to display</p>'
            '</div>'
        )
    return "".join(items)


def render_stats_cards(stats: Dict[str, Any]) -> str:
    """Count and percentage card per status, plus the total."""
    counts = stats.get("counts", {})
    percentages = stats.get("percentages", {})

    cards = [
        '<div class="stat-card total">'
        '<span class="stat-label">Total</span>'
        f'<span class="stat-value">{_sanitize(counts.get("total", 0))}</span>'
        '</div>'
    ]
    for status in STATUSES:
        cards.append(
            f'<div class="stat-card {status}">'
            f'<span class="stat-label">{status.capitalize()}</span>'
            f'<span class="stat-value">{_sanitize(counts.get(status, 0))}</span>'
            f'<span class="stat-percentage">{_sanitize(percentages.get(status, "0.0"))}%</span>'
            '</div>'
        )

    return f'<div class="stats-cards">{"".join(cards)}</div>'


def render_error(message: str) -> str:
    return f'<div class="error-message" role="alert">{_sanitize(message)}</div>'
