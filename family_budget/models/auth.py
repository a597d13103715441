"""
Auth Models

AuthState is transient: it lives for one session and is never persisted.
The user record is opaque; its shape belongs to the remote auth endpoint.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class AuthStatus(str, Enum):
    """
    Where the login handshake currently stands.

    IDLE also covers the guest case: host present but no token.
    """
    IDLE = "idle"
    FETCHING_TOKEN = "fetching_token"
    EXCHANGING = "exchanging"
    AUTHENTICATED = "authenticated"
    AUTH_FAILED = "auth_failed"


DEFAULT_DISPLAY_NAME = "مستخدم"


class AuthState(BaseModel):
    """Authenticated user (if any), loading flag and last error."""

    model_config = ConfigDict(frozen=True)

    status: AuthStatus = AuthStatus.IDLE
    user: Optional[dict[str, Any]] = None
    loading: bool = Field(
        default=False,
        description="True while a user-initiated login is in flight"
    )
    error: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    @property
    def display_name(self) -> str:
        """Greeting name: user name, then displayName, then a generic label."""
        if not self.user:
            return DEFAULT_DISPLAY_NAME
        return self.user.get("name") or self.user.get("displayName") or DEFAULT_DISPLAY_NAME

    def transition(self, status: AuthStatus, **changes) -> "AuthState":
        """Copy with a new status and any other field changes."""
        return self.model_copy(update={"status": status, **changes})
