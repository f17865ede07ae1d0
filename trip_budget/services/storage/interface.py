"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Keep the state in a local JSON file today
2. Use in-memory storage for testing
3. Swap in another key-value store later
4. Keep ledger logic decoupled from storage

The interface is intentionally tiny: the whole session state is one
opaque blob stored under one versioned key. No batching, no log,
last write wins.
"""

from abc import ABC, abstractmethod
from typing import Optional


class StateStorageInterface(ABC):
    """
    Abstract key-value store for serialized session state.

    Any storage implementation must implement these methods.
    """

    @abstractmethod
    def read(self, key: str) -> Optional[str]:
        """
        Read the blob stored under key.

        Returns:
            The stored text, or None if nothing is stored

        Raises:
            StorageError: If the backend itself cannot be read
        """
        pass

    @abstractmethod
    def write(self, key: str, blob: str) -> None:
        """
        Replace the blob stored under key.

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def remove(self, key: str) -> bool:
        """
        Remove the blob stored under key.

        Returns:
            True if something was removed
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class StorageCorruptError(StorageError):
    """The backing store exists but cannot be decoded."""
    pass
