"""
Main Orchestrator for the Family Living Calculator

Ties the components together and runs the login handshake:

    idle --host detected--> fetching_token --no token--> idle (guest)
                                           --token-----> exchanging
    exchanging --2xx--> authenticated
               --non-2xx / network / timeout--> auth_failed

Two entry points feed the same exchange step:
1. startup(): token from the host bridge (getAuthToken), runs once
2. login_with_auth_code(): user pressed login, token from the
   callback-style getAuthCode API

DESIGN DECISION: Auth failures never escape this module. Whatever goes
wrong ends up as AuthState.error; the calculator keeps working.
"""

from typing import Any, Callable, Optional, Sequence
from uuid import UUID

from family_budget.audit import AuditLogger, create_correlation_id
from family_budget.config import Settings, get_settings
from family_budget.models.auth import AuthState, AuthStatus
from family_budget.services.auth import AuthError, SuperQiAuthClient
from family_budget.services.bridge import (
    AuthCodeProvider,
    AuthCodeRejectedError,
    HostBridge,
    extract_auth_code,
    request_auth_code,
    resolve_host_bridge,
)
from family_budget.services.storage import (
    FormStorageInterface,
    InMemoryStorage,
    JsonFileStorage,
)
from family_budget.store import FormStore, client_storage_key

PLATFORM_AUTH_UNAVAILABLE = "Platform auth not available"
NO_AUTH_CODE = "Platform returned no auth code"


class AuthFlow:
    """
    Owns the session's AuthState.

    Every transition replaces the state with a new value; listeners (the
    UI) are told about each one.
    """

    def __init__(
        self,
        host: HostBridge,
        auth_client: SuperQiAuthClient,
        auth_code_provider: Optional[AuthCodeProvider] = None,
        scopes: Sequence[str] = ("auth_base",),
        audit_logger: Optional[AuditLogger] = None,
        on_change: Optional[Callable[[AuthState], None]] = None,
    ):
        self._host = host
        self._auth_client = auth_client
        self._auth_code_provider = auth_code_provider
        self._scopes = tuple(scopes)
        self._audit_logger = audit_logger or AuditLogger()
        self._on_change = on_change
        self._state = AuthState()

    @property
    def state(self) -> AuthState:
        return self._state

    @property
    def host(self) -> HostBridge:
        return self._host

    @property
    def can_login(self) -> bool:
        """Login button is enabled only when nothing is in flight."""
        return not self._state.loading

    def _set(self, state: AuthState) -> AuthState:
        self._state = state
        if self._on_change is not None:
            self._on_change(state)
        return state

    async def startup(self) -> AuthState:
        """
        Run the automatic login once, if a host is present.

        No token is a guest session, not an error: the state returns to
        idle with no user and no error, and no request is made.
        """
        if not self._host.is_present:
            return self._state

        self._set(self._state.transition(AuthStatus.FETCHING_TOKEN))
        token = self._host.get_auth_token()
        if not token:
            self._audit_logger.log_auth_token_missing()
            return self._set(self._state.transition(AuthStatus.IDLE))

        return await self._exchange(token, source="host_token")

    async def login_with_auth_code(self) -> AuthState:
        """
        User-initiated login through getAuthCode.

        Ignored while another login is in flight.
        """
        if self._state.loading:
            return self._state

        if self._auth_code_provider is None:
            self._audit_logger.log_auth_failed(PLATFORM_AUTH_UNAVAILABLE)
            return self._set(self._state.transition(
                AuthStatus.AUTH_FAILED, error=PLATFORM_AUTH_UNAVAILABLE
            ))

        self._set(self._state.transition(
            AuthStatus.FETCHING_TOKEN, loading=True, error=None
        ))
        try:
            try:
                result = await request_auth_code(self._auth_code_provider, self._scopes)
            except AuthCodeRejectedError as e:
                return self._fail(str(e))
            except Exception as e:
                return self._fail(str(e) or type(e).__name__)

            token = extract_auth_code(result)
            if not token:
                return self._fail(NO_AUTH_CODE)

            return await self._exchange(token, source="auth_code")
        finally:
            if self._state.loading:
                self._set(self._state.model_copy(update={"loading": False}))

    async def _exchange(self, token: str, source: str) -> AuthState:
        """Shared exchange step for both entry points."""
        correlation_id = create_correlation_id()
        self._audit_logger.log_auth_started(source, correlation_id)
        self._set(self._state.transition(AuthStatus.EXCHANGING, error=None))

        try:
            user = await self._auth_client.exchange_token(token)
        except AuthError as e:
            return self._fail(str(e), correlation_id)
        except Exception as e:
            return self._fail(f"Auth failed: {e}" if str(e) else type(e).__name__, correlation_id)

        self._audit_logger.log_auth_succeeded(user, correlation_id)
        return self._set(self._state.transition(
            AuthStatus.AUTHENTICATED, user=user, error=None
        ))

    def _fail(self, message: str, correlation_id: Optional[UUID] = None) -> AuthState:
        self._audit_logger.log_auth_failed(message, correlation_id)
        return self._set(self._state.transition(
            AuthStatus.AUTH_FAILED, error=message, loading=False
        ))


def _build_storage(settings: Settings, audit_logger: AuditLogger) -> FormStorageInterface:
    """File storage when a data directory is configured, else in-memory."""
    data_path = settings.storage.data_path
    if data_path is None:
        return InMemoryStorage()
    if data_path.exists() and not data_path.is_dir():
        audit_logger.log_form_load_failed(
            settings.storage.storage_key, f"{data_path} is not a directory; using memory"
        )
        return InMemoryStorage()
    return JsonFileStorage(data_path)


def create_app_components(
    host_object: Any = None,
    auth_code_provider: Optional[AuthCodeProvider] = None,
    settings: Optional[Settings] = None,
    storage: Optional[FormStorageInterface] = None,
    auth_client: Optional[SuperQiAuthClient] = None,
    client_id: Optional[str] = None,
) -> tuple[FormStore, AuthFlow, HostBridge]:
    """
    Factory function to create all application components.

    Args:
        host_object: Host-provided bridge object, None when standalone
        auth_code_provider: Object exposing getAuthCode, if any
        settings: Defaults to get_settings()
        storage: Overrides the configured storage (tests)
        auth_client: Overrides the configured auth client (tests)
        client_id: Browser id scoping the storage slot. Without one the
            configured backend is not used and the form lives in memory
            for this session only.

    Returns:
        (form_store, auth_flow, host_bridge)
    """
    settings = settings or get_settings()
    audit_logger = AuditLogger()

    storage_key = settings.storage.storage_key
    if client_id is not None:
        storage_key = client_storage_key(storage_key, client_id)
        storage = storage or _build_storage(settings, audit_logger)
    else:
        storage = storage or InMemoryStorage()
    form_store = FormStore(
        storage,
        storage_key=storage_key,
        audit_logger=audit_logger,
    )

    host = resolve_host_bridge(host_object, audit_logger)
    auth_flow = AuthFlow(
        host=host,
        auth_client=auth_client or SuperQiAuthClient(),
        auth_code_provider=auth_code_provider,
        scopes=settings.auth.scopes_list or ("auth_base",),
        audit_logger=audit_logger,
    )

    return form_store, auth_flow, host
