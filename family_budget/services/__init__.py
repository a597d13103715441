"""Services package."""

from family_budget.services.auth import (
    AuthError,
    AuthHTTPError,
    AuthNetworkError,
    AuthResponseError,
    AuthTimeoutError,
    SuperQiAuthClient,
)
from family_budget.services.bridge import (
    AuthCodeProvider,
    AuthCodeRejectedError,
    HostBridge,
    NullHostBridge,
    QueryParamsHost,
    SafeHostBridge,
    request_auth_code,
    resolve_host_bridge,
)
from family_budget.services.storage import (
    FormStorageInterface,
    InMemoryStorage,
    InvalidKeyError,
    JsonFileStorage,
    StorageError,
)

__all__ = [
    # Auth
    "AuthError",
    "AuthHTTPError",
    "AuthNetworkError",
    "AuthResponseError",
    "AuthTimeoutError",
    "SuperQiAuthClient",
    # Host bridge
    "AuthCodeProvider",
    "AuthCodeRejectedError",
    "HostBridge",
    "NullHostBridge",
    "QueryParamsHost",
    "SafeHostBridge",
    "request_auth_code",
    "resolve_host_bridge",
    # Storage
    "FormStorageInterface",
    "InMemoryStorage",
    "InvalidKeyError",
    "JsonFileStorage",
    "StorageError",
]
