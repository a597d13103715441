"""
Host Bridge Package

Abstracts the presence or absence of the Super Qi host runtime.
"""

from family_budget.services.bridge.auth_code import (
    AuthCodeProvider,
    AuthCodeRejectedError,
    describe_failure,
    extract_auth_code,
    request_auth_code,
)
from family_budget.services.bridge.host import (
    HostBridge,
    NullHostBridge,
    SafeHostBridge,
    resolve_host_bridge,
)
from family_budget.services.bridge.query_params import QueryParamsHost

__all__ = [
    "AuthCodeProvider",
    "AuthCodeRejectedError",
    "HostBridge",
    "NullHostBridge",
    "QueryParamsHost",
    "SafeHostBridge",
    "describe_failure",
    "extract_auth_code",
    "request_auth_code",
    "resolve_host_bridge",
]
