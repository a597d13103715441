"""
Storage Services Package

Provides the slot storage interface and its implementations.
"""

from family_budget.services.storage.interface import (
    FormStorageInterface,
    InvalidKeyError,
    StorageError,
)
from family_budget.services.storage.json_file import JsonFileStorage
from family_budget.services.storage.memory import InMemoryStorage

__all__ = [
    # Interface
    "FormStorageInterface",
    # Exceptions
    "InvalidKeyError",
    "StorageError",
    # Implementations
    "InMemoryStorage",
    "JsonFileStorage",
]
