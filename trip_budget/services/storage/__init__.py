"""
Storage Services Package

Provides the abstract key-value interface, the versioned state codec and
concrete implementations. A local JSON file is the default backend.
"""

from trip_budget.services.storage.interface import (
    StateStorageInterface,
    StorageCorruptError,
    StorageError,
)
from trip_budget.services.storage.codec import (
    SCHEMA_VERSION,
    LoadedState,
    dump_state,
    load_state,
    state_to_dict,
)
from trip_budget.services.storage.json_file import JsonFileStateStorage
from trip_budget.services.storage.memory import InMemoryStateStorage

__all__ = [
    # Interfaces
    "StateStorageInterface",
    # Exceptions
    "StorageCorruptError",
    "StorageError",
    # Codec
    "SCHEMA_VERSION",
    "LoadedState",
    "dump_state",
    "load_state",
    "state_to_dict",
    # Implementations
    "InMemoryStateStorage",
    "JsonFileStateStorage",
]
