"""
Callback-style Auth Code API

Some host environments expose a second login API,
getAuthCode({scopes, success, fail}), which reports its result through
callbacks instead of returning a value. request_auth_code turns that into
a single awaitable so the login flow has one code path for both APIs.
"""

import asyncio
import json
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional, Sequence


class AuthCodeRejectedError(Exception):
    """The platform called fail() instead of success()."""

    def __init__(self, payload: Any):
        self.payload = payload
        super().__init__(describe_failure(payload))


class AuthCodeProvider(ABC):
    """Host object exposing the callback-based getAuthCode API."""

    @abstractmethod
    def get_auth_code(
        self,
        scopes: Sequence[str],
        success: Callable[[Any], None],
        fail: Callable[[Any], None],
    ) -> None:
        """Start the platform login; exactly one callback is eventually called."""
        pass


def describe_failure(payload: Any) -> str:
    """
    Error text for a platform failure payload.

    Prefer the rejected scopes when the platform reports them.
    """
    if isinstance(payload, dict) and payload.get("authErrorScopes"):
        payload = payload["authErrorScopes"]
    try:
        return json.dumps(payload, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        return str(payload)


def extract_auth_code(result: Any) -> Optional[str]:
    """Pull the code out of a success payload (authCode, auth_code or token)."""
    if not isinstance(result, dict):
        return None
    for key in ("authCode", "auth_code", "token"):
        value = result.get(key)
        if value:
            return str(value)
    return None


async def request_auth_code(provider: AuthCodeProvider, scopes: Sequence[str]) -> Any:
    """
    Call provider.get_auth_code and wait for its callback.

    Returns the success payload. Raises AuthCodeRejectedError when fail()
    is called, or whatever the provider raises synchronously. Callbacks may
    fire immediately, later on the loop, or from another thread; only the
    first one counts.
    """
    loop = asyncio.get_running_loop()
    future: asyncio.Future = loop.create_future()

    def _settle(setter: Callable[[Any], None], value: Any) -> None:
        if not future.done():
            setter(value)

    def _dispatch(setter: Callable[[Any], None], value: Any) -> None:
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is loop:
            _settle(setter, value)
        else:
            loop.call_soon_threadsafe(_settle, setter, value)

    def success(result: Any) -> None:
        _dispatch(future.set_result, result)

    def fail(payload: Any) -> None:
        _dispatch(future.set_exception, AuthCodeRejectedError(payload))

    provider.get_auth_code(list(scopes), success, fail)
    return await future
