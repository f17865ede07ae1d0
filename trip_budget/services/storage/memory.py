"""In-memory storage, used by tests and by the UI when no file is configured."""

from typing import Optional

from trip_budget.services.storage.interface import StateStorageInterface


class InMemoryStateStorage(StateStorageInterface):
    """Dictionary-backed key-value store."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})
        self.write_count = 0

    def read(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def write(self, key: str, blob: str) -> None:
        self._data[key] = blob
        self.write_count += 1

    def remove(self, key: str) -> bool:
        return self._data.pop(key, None) is not None
