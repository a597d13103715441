"""In-memory slot storage for tests and sessions without a data directory."""

from typing import Optional

from family_budget.services.storage.interface import FormStorageInterface


class InMemoryStorage(FormStorageInterface):
    """Slots held in a dict for the lifetime of the object."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._items: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)
