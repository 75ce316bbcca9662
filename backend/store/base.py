"""
Base Record Store Interface

Abstract interface for the backing store holding Blacklist records.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from records.models import Record


class RecordStore(ABC):
    """Abstract base class for record backing stores."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Store name (e.g., 'firestore', 'memory')."""
        pass

    @abstractmethod
    async def fetch_range(self, field: str, low: int, high: int) -> List[Record]:
        """
        All records whose ``field`` lies in the closed range [low, high].

        Returns:
            Records ordered by ``field``
        """
        pass

    @abstractmethod
    async def fetch_by_status(
        self,
        status: str,
        limit: int,
        low: int = 0,
        high: int = 200,
    ) -> List[Record]:
        """
        Records with the given status and v1 in [low, high].

        Returns:
            At most ``limit`` records ordered by v1
        """
        pass

    @abstractmethod
    async def fetch_all(self) -> List[Record]:
        """Every record in the collection, unordered."""
        pass

    @abstractmethod
    async def get_item(self, item_id: str) -> Optional[Record]:
        """Single record by id, or None if it does not exist."""
        pass

    @abstractmethod
    async def update_item(self, item_id: str, data: Dict[str, Any]) -> None:
        """
        Patch fields of an existing record.

        Raises:
            ItemNotFoundError: no record with that id
        """
        pass

    async def close(self) -> None:
        """Release client resources."""
        return None
