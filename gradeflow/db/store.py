"""
The record-store boundary.

Services talk to persistence only through :class:`RecordStore`. Rows go in and
come out in persisted (snake_case) form; key conversion is the caller's job.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional


class RecordStore(ABC):
    @abstractmethod
    async def fetch(self, table: str, record_id: str) -> dict:
        """Return the row with ``id == record_id``; raise RecordNotFoundError if absent."""

    @abstractmethod
    async def select(
        self,
        table: str,
        filters: Optional[Dict[str, object]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[dict]:
        """Return rows matching every ``column == value`` filter."""

    @abstractmethod
    async def update(self, table: str, record_id: str, values: dict) -> dict:
        """Apply ``values`` to the row with ``id == record_id`` and return the updated row."""

    @abstractmethod
    async def insert(self, table: str, values: dict) -> dict:
        """Insert one row and return it as stored (with its id and defaults)."""
