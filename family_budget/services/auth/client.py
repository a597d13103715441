"""
Super Qi Auth Client

Exchanges a platform token for the user's identity with one POST:

    POST {base_url}/api/auth-with-superQi
    {"token": "<token>"}

A 2xx response carries either {"user": {...}} or the user fields at the
top level. Anything else is an AuthError; callers turn that into a
message on AuthState rather than letting it propagate.
"""

from typing import Any, Optional

import httpx

from family_budget.config import get_settings


class AuthError(Exception):
    """Base exception for the token exchange."""
    pass


class AuthHTTPError(AuthError):
    """Endpoint answered with a non-2xx status."""

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"Auth failed: {status_code} {body}".rstrip())


class AuthTimeoutError(AuthError):
    """No answer within the configured timeout."""

    def __init__(self):
        super().__init__("Auth failed: timeout")


class AuthNetworkError(AuthError):
    """Connection-level failure (DNS, refused, TLS, ...)."""
    pass


class AuthResponseError(AuthError):
    """2xx response whose body is not a JSON object."""
    pass


class SuperQiAuthClient:
    """
    Thin async client for the auth endpoint.

    A fresh httpx.AsyncClient is used per exchange; there is at most one
    exchange per login attempt.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        auth_path: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings().auth
        self._base_url = (base_url or settings.base_url).rstrip("/")
        self._auth_path = auth_path or settings.auth_path
        self._timeout = timeout_seconds if timeout_seconds is not None else settings.timeout_seconds
        self._transport = transport

    @property
    def endpoint(self) -> str:
        return f"{self._base_url}/{self._auth_path.lstrip('/')}"

    async def exchange_token(self, token: str) -> dict[str, Any]:
        """
        POST the token and return the user record.

        Raises:
            AuthHTTPError: Non-2xx status (status and body text captured)
            AuthTimeoutError: Request timed out
            AuthNetworkError: Connection failed
            AuthResponseError: Body isn't a JSON object
        """
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                response = await client.post(
                    self.endpoint,
                    json={"token": token},
                    headers={"Content-Type": "application/json"},
                )
        except httpx.TimeoutException as e:
            raise AuthTimeoutError() from e
        except httpx.HTTPError as e:
            raise AuthNetworkError(f"Auth failed: {type(e).__name__}: {e}") from e

        if not response.is_success:
            raise AuthHTTPError(response.status_code, response.text)

        try:
            payload = response.json()
        except ValueError as e:
            raise AuthResponseError(f"Auth failed: invalid JSON response: {e}") from e

        return extract_user(payload)


def extract_user(payload: Any) -> dict[str, Any]:
    """The user record: payload["user"] when present, else the payload itself."""
    if not isinstance(payload, dict):
        raise AuthResponseError(
            f"Auth failed: expected a JSON object, got {type(payload).__name__}"
        )
    user = payload.get("user")
    if user:
        if not isinstance(user, dict):
            raise AuthResponseError("Auth failed: 'user' is not an object")
        return user
    return payload
