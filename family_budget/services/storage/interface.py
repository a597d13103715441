"""
Abstract Storage Interface

DESIGN DECISION: The form is persisted in a single named slot, the same
way a browser keeps it in localStorage. The interface is a plain
key/value store so that:
1. A JSON file on disk works for the Streamlit app
2. In-memory storage works for tests and throwaway sessions
3. Business logic never sees where the bytes end up
"""

from abc import ABC, abstractmethod
from typing import Optional


class FormStorageInterface(ABC):
    """
    Abstract key/value slot storage.

    Values are opaque text (the serialized form); the storage does not
    parse them.
    """

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        """
        Read a slot.

        Returns:
            The stored text, or None if the slot is empty

        Raises:
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """
        Overwrite a slot with new text.

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def remove_item(self, key: str) -> None:
        """
        Clear a slot. Removing an empty slot is not an error.

        Raises:
            StorageError: If the backend cannot be modified
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class InvalidKeyError(StorageError):
    """Slot name cannot be mapped to the backend."""
    pass
