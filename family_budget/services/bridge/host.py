"""
Host Bridge

The mini-app can run inside the Super Qi host or standalone. The rest of
the app only ever talks to a HostBridge, resolved once at startup:

- SafeHostBridge wraps whatever object the host provides. Its methods are
  all optional; a missing method, a non-callable attribute or a method
  that raises is treated as a no-op.
- NullHostBridge stands in when there is no host at all.

Presence of a host object is the only signal of embedded mode.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from family_budget.audit import AuditLogger


class HostBridge(ABC):
    """What the app needs from the host runtime."""

    @property
    @abstractmethod
    def is_present(self) -> bool:
        """True when running inside the host."""
        pass

    @abstractmethod
    def ready(self) -> None:
        """Tell the host the UI has mounted. Never raises."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Ask the host to dismiss the mini-app. Never raises."""
        pass

    @abstractmethod
    def get_auth_token(self) -> Optional[str]:
        """Token from the host's native API, or None. Never raises."""
        pass


class NullHostBridge(HostBridge):
    """Standalone (browser) mode: every call is a no-op."""

    @property
    def is_present(self) -> bool:
        return False

    def ready(self) -> None:
        pass

    def close(self) -> None:
        pass

    def get_auth_token(self) -> Optional[str]:
        return None


class SafeHostBridge(HostBridge):
    """
    Defensive wrapper around a host-provided object.

    The host object may expose ready(), close() and getAuthToken()
    (or get_auth_token()); any of them may be missing.
    """

    _METHOD_NAMES = {
        "ready": ("ready",),
        "close": ("close",),
        "get_auth_token": ("getAuthToken", "get_auth_token"),
    }

    def __init__(self, host: Any, audit_logger: Optional[AuditLogger] = None):
        self._host = host
        self._audit_logger = audit_logger or AuditLogger()

    @property
    def is_present(self) -> bool:
        return True

    @property
    def host(self) -> Any:
        return self._host

    def _call(self, method: str) -> Any:
        for name in self._METHOD_NAMES[method]:
            fn = getattr(self._host, name, None)
            if callable(fn):
                break
        else:
            return None
        try:
            return fn()
        except Exception as e:
            self._audit_logger.log_bridge_call_failed(method, f"{type(e).__name__}: {e}")
            return None

    def ready(self) -> None:
        self._call("ready")
        self._audit_logger.log_host_ready()

    def close(self) -> None:
        self._call("close")
        self._audit_logger.log_host_close()

    def get_auth_token(self) -> Optional[str]:
        token = self._call("get_auth_token")
        if token is None:
            return None
        token = str(token)
        return token or None


def resolve_host_bridge(
    host: Any = None,
    audit_logger: Optional[AuditLogger] = None,
) -> HostBridge:
    """
    Pick the bridge implementation for this session.

    Pass the host-provided object (or None when standalone).
    """
    if host is None:
        return NullHostBridge()
    if isinstance(host, HostBridge):
        return host
    audit_logger = audit_logger or AuditLogger()
    audit_logger.log_host_detected()
    return SafeHostBridge(host, audit_logger)
