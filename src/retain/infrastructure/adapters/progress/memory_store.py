"""
In-Memory Progress Repository: process-local adapter.

Stores the serialized form of each record so callers never share state
with the store.
"""

from typing import Any

from retain.domain.progress.models import ProgressAggregate
from retain.domain.progress.ports import ProgressRepository


class InMemoryProgressRepository(ProgressRepository):
    def __init__(self, records: dict[str, dict[str, Any]] | None = None):
        self._records: dict[str, dict[str, Any]] = dict(records or {})

    async def load(self, user_id: str) -> ProgressAggregate | None:
        data = self._records.get(user_id)
        if data is None:
            return None
        return ProgressAggregate.from_dict(data)

    async def save(self, progress: ProgressAggregate) -> None:
        self._records[progress.user_id] = progress.to_dict()

    def __len__(self) -> int:
        return len(self._records)
