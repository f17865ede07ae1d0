"""Services package."""

from trip_budget.services.storage import (
    InMemoryStateStorage,
    JsonFileStateStorage,
    LoadedState,
    StateStorageInterface,
    StorageCorruptError,
    StorageError,
    dump_state,
    load_state,
)

__all__ = [
    "InMemoryStateStorage",
    "JsonFileStateStorage",
    "LoadedState",
    "StateStorageInterface",
    "StorageCorruptError",
    "StorageError",
    "dump_state",
    "load_state",
]
