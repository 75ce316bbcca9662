"""
In-memory Record Store

Development-mode stand-in for Firestore (used when no credentials are
configured) and a convenient store for tests.  Setting ``error`` makes
every call raise it, which simulates an outage or quota exhaustion.
"""

import copy
import logging
from typing import Any, Dict, Iterable, List, Optional

from exceptions import ItemNotFoundError
from records.models import Record, in_range, numeric_field
from .base import RecordStore

logger = logging.getLogger(__name__)


class InMemoryRecordStore(RecordStore):
    """Record store backed by a dict keyed by record id."""

    def __init__(self, records: Optional[Iterable[Record]] = None):
        self._records: Dict[str, Record] = {}
        for index, record in enumerate(records or []):
            item_id = str(record.get("id") or f"item_{index}")
            self._records[item_id] = {**copy.deepcopy(record), "id": item_id}
        self.error: Optional[BaseException] = None
        self.query_count = 0

    @property
    def name(self) -> str:
        return "memory"

    def _begin_query(self) -> None:
        self.query_count += 1
        if self.error is not None:
            raise self.error

    @staticmethod
    def _sort_key(field: str):
        def key(record: Record):
            value = numeric_field(record, field)
            return value if value is not None else 0
        return key

    async def fetch_range(self, field: str, low: int, high: int) -> List[Record]:
        self._begin_query()
        matches = [
            copy.deepcopy(record) for record in self._records.values()
            if in_range(record, field, low, high)
        ]
        return sorted(matches, key=self._sort_key(field))

    async def fetch_by_status(
        self,
        status: str,
        limit: int,
        low: int = 0,
        high: int = 200,
    ) -> List[Record]:
        self._begin_query()
        matches = [
            copy.deepcopy(record) for record in self._records.values()
            if record.get("status") == status and in_range(record, "v1", low, high)
        ]
        return sorted(matches, key=self._sort_key("v1"))[:limit]

    async def fetch_all(self) -> List[Record]:
        self._begin_query()
        return [copy.deepcopy(record) for record in self._records.values()]

    async def get_item(self, item_id: str) -> Optional[Record]:
        self._begin_query()
        record = self._records.get(item_id)
        return copy.deepcopy(record) if record is not None else None

    async def update_item(self, item_id: str, data: Dict[str, Any]) -> None:
        self._begin_query()
        if item_id not in self._records:
            raise ItemNotFoundError(item_id)
        self._records[item_id].update(data)
        logger.debug(f"Memory store: updated {item_id} ({', '.join(data)})")
