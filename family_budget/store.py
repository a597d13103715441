"""
Persisted Form Store

Owns the link between FormState and its storage slot.

DESIGN DECISION: The store does not hold the current state. Callers
(the Streamlit session) keep the latest FormState and pass it in; every
update returns a new value and writes it out. Persistence is a side
effect that must never break the form, so load and save swallow and log
their failures instead of raising.
"""

import json
import re
import uuid
from typing import Any, Optional

from family_budget.audit import AuditLogger
from family_budget.models.form import FormState
from family_budget.services.storage import (
    FormStorageInterface,
    InvalidKeyError,
    StorageError,
)

DEFAULT_STORAGE_KEY = "family-living-calculator"

_CLIENT_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{8,64}$")


def new_client_id() -> str:
    """Random id naming one browser's slot."""
    return uuid.uuid4().hex


def is_valid_client_id(client_id: Any) -> bool:
    return isinstance(client_id, str) and bool(_CLIENT_ID_PATTERN.match(client_id))


def client_storage_key(base_key: str, client_id: str) -> str:
    """
    Slot name for one client.

    Every browser gets its own slot under the same base key, so a
    server-side backend never hands one visitor another's form.

    Raises:
        InvalidKeyError: If client_id is not 8-64 letters, digits, _ or -
    """
    if not is_valid_client_id(client_id):
        raise InvalidKeyError(f"Invalid client id: {client_id!r}")
    return f"{base_key}.{client_id}"


class FormStore:
    """Load, update and save the form in a single storage slot."""

    def __init__(
        self,
        storage: FormStorageInterface,
        storage_key: str = DEFAULT_STORAGE_KEY,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._storage_key = storage_key
        self._audit_logger = audit_logger or AuditLogger()

    @property
    def storage_key(self) -> str:
        return self._storage_key

    def load(self) -> FormState:
        """
        Read the slot and hydrate a FormState.

        Missing, unreadable or corrupt data falls back to the defaults,
        merged with whatever part of the stored record is still valid.
        """
        try:
            raw = self._storage.get_item(self._storage_key)
        except StorageError as e:
            self._audit_logger.log_form_load_failed(self._storage_key, str(e))
            return FormState()

        if raw is None:
            self._audit_logger.log_form_loaded(self._storage_key, found=False, children=0)
            return FormState()

        try:
            data = json.loads(raw)
        except ValueError as e:
            self._audit_logger.log_form_load_failed(self._storage_key, f"Invalid JSON: {e}")
            return FormState()

        if not isinstance(data, dict):
            self._audit_logger.log_form_load_failed(
                self._storage_key, f"Expected an object, got {type(data).__name__}"
            )
            return FormState()

        state = FormState.from_partial(data)
        self._audit_logger.log_form_loaded(
            self._storage_key, found=True, children=len(state.children)
        )
        return state

    def save(self, state: FormState) -> bool:
        """
        Overwrite the slot with the whole state.

        Returns False (and logs) if serialization or the write fails.
        """
        try:
            payload = state.to_storage_json()
            self._storage.set_item(self._storage_key, payload)
        except (StorageError, ValueError, TypeError) as e:
            self._audit_logger.log_form_save_failed(self._storage_key, str(e))
            return False
        self._audit_logger.log_form_saved(self._storage_key, len(payload.encode("utf-8")))
        return True

    def set_field(self, state: FormState, key: str, value: Any) -> FormState:
        """Change one top-level field, persist, and return the new state."""
        updated = state.with_field(key, value)
        self.save(updated)
        return updated

    def set_child_field(self, state: FormState, index: int, key: str, value: Any) -> FormState:
        """Change one field of one child, persist, and return the new state."""
        updated = state.with_child_field(index, key, value)
        self.save(updated)
        return updated

    def reset(self) -> FormState:
        """Clear the slot and start over from the defaults."""
        try:
            self._storage.remove_item(self._storage_key)
        except StorageError as e:
            self._audit_logger.log_form_save_failed(self._storage_key, str(e))
        else:
            self._audit_logger.log_form_reset(self._storage_key)
        return FormState()
