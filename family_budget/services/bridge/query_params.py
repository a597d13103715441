"""
Query-parameter Host

The Streamlit page cannot see the host's JavaScript globals, so the
Super Qi webview announces itself through the page URL instead:

    https://<app>/?host=superqi&token=<auth token>&authCode=<code>

QueryParamsHost exposes that as a host object (ready / close /
getAuthToken) and as an AuthCodeProvider for the explicit login button.
"""

from typing import Any, Callable, Mapping, Optional, Sequence

from family_budget.services.bridge.auth_code import AuthCodeProvider

HOST_PARAM = "host"
HOST_VALUE = "superqi"
TOKEN_PARAM = "token"
AUTH_CODE_PARAM = "authCode"


def _first(value: Any) -> Optional[str]:
    if isinstance(value, (list, tuple)):
        value = value[0] if value else None
    if value is None:
        return None
    return str(value) or None


class QueryParamsHost(AuthCodeProvider):
    """Host object built from the page's query parameters."""

    def __init__(self, params: Mapping[str, Any]):
        self._params = dict(params)
        self.ready_signalled = False
        self.close_requested = False

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> Optional["QueryParamsHost"]:
        """A host when the URL says so, else None (standalone mode)."""
        if _first(params.get(HOST_PARAM)) != HOST_VALUE:
            return None
        return cls(params)

    def ready(self) -> None:
        self.ready_signalled = True

    def close(self) -> None:
        self.close_requested = True

    def getAuthToken(self) -> Optional[str]:
        return _first(self._params.get(TOKEN_PARAM))

    def get_auth_code(
        self,
        scopes: Sequence[str],
        success: Callable[[Any], None],
        fail: Callable[[Any], None],
    ) -> None:
        code = _first(self._params.get(AUTH_CODE_PARAM))
        if code:
            success({"authCode": code, "scopes": list(scopes)})
        else:
            fail({"error": "no auth code in page URL", "authErrorScopes": list(scopes)})
