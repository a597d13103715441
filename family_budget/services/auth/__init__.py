"""Auth Services Package."""

from family_budget.services.auth.client import (
    AuthError,
    AuthHTTPError,
    AuthNetworkError,
    AuthResponseError,
    AuthTimeoutError,
    SuperQiAuthClient,
    extract_user,
)

__all__ = [
    "AuthError",
    "AuthHTTPError",
    "AuthNetworkError",
    "AuthResponseError",
    "AuthTimeoutError",
    "SuperQiAuthClient",
    "extract_user",
]
