"""In-memory key-value store for tests and throwaway sessions."""

import copy
from typing import Mapping, Optional

from liquidity_engine.services.storage.interface import JSONValue, KeyValueStore


class InMemoryStore(KeyValueStore):
    """Dict-backed store. Values are deep-copied in and out."""

    def __init__(self, initial: Optional[Mapping[str, JSONValue]] = None):
        self._data: dict[str, JSONValue] = copy.deepcopy(dict(initial or {}))
        self.write_count = 0

    async def get(self, key: str) -> Optional[JSONValue]:
        return copy.deepcopy(self._data.get(key))

    async def set(self, key: str, value: JSONValue) -> None:
        await self.set_many({key: value})

    async def set_many(self, values: Mapping[str, JSONValue]) -> None:
        self._data.update(copy.deepcopy(dict(values)))
        self.write_count += 1

    def snapshot(self) -> dict[str, JSONValue]:
        """Copy of everything stored, for assertions."""
        return copy.deepcopy(self._data)
