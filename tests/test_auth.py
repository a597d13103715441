"""
Tests for the auth client and the login flow.

HTTP is faked with httpx.MockTransport; no request leaves the process.
"""

import asyncio
import json

import httpx
import pytest

from family_budget.config import Settings
from family_budget.models import AuthState, AuthStatus
from family_budget.orchestrator import (
    NO_AUTH_CODE,
    PLATFORM_AUTH_UNAVAILABLE,
    AuthFlow,
    create_app_components,
)
from family_budget.services.auth import (
    AuthHTTPError,
    AuthNetworkError,
    AuthResponseError,
    AuthTimeoutError,
    SuperQiAuthClient,
    extract_user,
)
from family_budget.services.bridge import (
    AuthCodeProvider,
    NullHostBridge,
    resolve_host_bridge,
)
from family_budget.services.storage import (
    InMemoryStorage,
    InvalidKeyError,
    JsonFileStorage,
)
from family_budget.store import DEFAULT_STORAGE_KEY, FormStore


BASE_URL = "https://auth.example.test"


class FakeEndpoint:
    """Records requests and answers with a canned response."""

    def __init__(self, status_code=200, body=None, text=None, exc=None):
        self.requests = []
        self.status_code = status_code
        self.body = body
        self.text = text
        self.exc = exc

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.exc is not None:
            raise self.exc(f"simulated {self.exc.__name__}", request=request)
        if self.text is not None:
            return httpx.Response(self.status_code, text=self.text)
        return httpx.Response(self.status_code, json=self.body)

    def client(self) -> SuperQiAuthClient:
        return SuperQiAuthClient(
            base_url=BASE_URL,
            timeout_seconds=1.0,
            transport=httpx.MockTransport(self),
        )


class FakeHost:

    def __init__(self, token=None):
        self.token = token
        self.ready_calls = 0

    def ready(self):
        self.ready_calls += 1

    def getAuthToken(self):
        return self.token


class CallbackProvider(AuthCodeProvider):
    """getAuthCode that succeeds or fails synchronously."""

    def __init__(self, result=None, failure=None):
        self.result = result
        self.failure = failure
        self.calls = 0
        self.seen_states = []
        self.flow = None

    def get_auth_code(self, scopes, success, fail):
        self.calls += 1
        if self.flow is not None:
            self.seen_states.append(self.flow.state)
        if self.failure is not None:
            fail(self.failure)
        else:
            success(self.result)


def make_flow(endpoint, host=None, provider=None, on_change=None) -> AuthFlow:
    return AuthFlow(
        host=resolve_host_bridge(host),
        auth_client=endpoint.client(),
        auth_code_provider=provider,
        on_change=on_change,
    )


class TestSuperQiAuthClient:

    def test_posts_token_as_json(self):
        endpoint = FakeEndpoint(body={"user": {"name": "Ali"}})
        user = asyncio.run(endpoint.client().exchange_token("tok"))
        assert user == {"name": "Ali"}
        request = endpoint.requests[0]
        assert request.method == "POST"
        assert str(request.url) == f"{BASE_URL}/api/auth-with-superQi"
        assert request.headers["content-type"] == "application/json"
        assert json.loads(request.content) == {"token": "tok"}

    def test_top_level_user_record(self):
        endpoint = FakeEndpoint(body={"id": 7, "name": "Zainab"})
        assert asyncio.run(endpoint.client().exchange_token("tok")) == {"id": 7, "name": "Zainab"}

    def test_non_2xx_captures_status_and_body(self):
        endpoint = FakeEndpoint(status_code=401, text="invalid")
        with pytest.raises(AuthHTTPError) as exc_info:
            asyncio.run(endpoint.client().exchange_token("tok"))
        assert exc_info.value.status_code == 401
        assert exc_info.value.body == "invalid"
        assert str(exc_info.value) == "Auth failed: 401 invalid"

    def test_timeout(self):
        endpoint = FakeEndpoint(exc=httpx.ReadTimeout)
        with pytest.raises(AuthTimeoutError, match="timeout"):
            asyncio.run(endpoint.client().exchange_token("tok"))

    def test_network_error(self):
        endpoint = FakeEndpoint(exc=httpx.ConnectError)
        with pytest.raises(AuthNetworkError):
            asyncio.run(endpoint.client().exchange_token("tok"))

    def test_invalid_json(self):
        endpoint = FakeEndpoint(text="<html>")
        with pytest.raises(AuthResponseError):
            asyncio.run(endpoint.client().exchange_token("tok"))

    def test_extract_user_rejects_non_objects(self):
        with pytest.raises(AuthResponseError):
            extract_user(["not", "an", "object"])
        with pytest.raises(AuthResponseError):
            extract_user({"user": "string"})

    def test_endpoint_joining(self):
        client = SuperQiAuthClient(base_url="https://a.test/", auth_path="api/x")
        assert client.endpoint == "https://a.test/api/x"


class TestStartupFlow:

    def test_no_host_does_nothing(self):
        endpoint = FakeEndpoint(body={"user": {}})
        flow = make_flow(endpoint, host=None)
        state = asyncio.run(flow.startup())
        assert state == AuthState()
        assert endpoint.requests == []

    def test_host_without_token_stays_guest(self):
        """No token: no network call, no user, no error."""
        endpoint = FakeEndpoint(body={"user": {"name": "x"}})
        flow = make_flow(endpoint, host=FakeHost(token=None))
        state = asyncio.run(flow.startup())
        assert endpoint.requests == []
        assert state.status == AuthStatus.IDLE
        assert state.user is None
        assert state.error is None

    def test_token_success(self):
        endpoint = FakeEndpoint(body={"user": {"name": "Ali"}})
        flow = make_flow(endpoint, host=FakeHost(token="tok"))
        state = asyncio.run(flow.startup())
        assert state.status == AuthStatus.AUTHENTICATED
        assert state.user == {"name": "Ali"}
        assert state.error is None
        assert flow.state is state
        assert json.loads(endpoint.requests[0].content) == {"token": "tok"}

    def test_token_rejected_with_401(self):
        endpoint = FakeEndpoint(status_code=401, text="invalid")
        flow = make_flow(endpoint, host=FakeHost(token="tok"))
        state = asyncio.run(flow.startup())
        assert state.status == AuthStatus.AUTH_FAILED
        assert state.error is not None
        assert "401" in state.error
        assert state.user is None

    def test_timeout_becomes_auth_failed(self):
        endpoint = FakeEndpoint(exc=httpx.ConnectTimeout)
        flow = make_flow(endpoint, host=FakeHost(token="tok"))
        state = asyncio.run(flow.startup())
        assert state.status == AuthStatus.AUTH_FAILED
        assert "timeout" in state.error

    def test_transitions_are_reported(self):
        endpoint = FakeEndpoint(body={"user": {"name": "Ali"}})
        seen = []
        flow = make_flow(endpoint, host=FakeHost(token="tok"), on_change=lambda s: seen.append(s.status))
        asyncio.run(flow.startup())
        assert seen == [
            AuthStatus.FETCHING_TOKEN,
            AuthStatus.EXCHANGING,
            AuthStatus.AUTHENTICATED,
        ]


class TestAuthCodeLogin:

    def test_provider_missing(self):
        endpoint = FakeEndpoint(body={})
        flow = make_flow(endpoint)
        state = asyncio.run(flow.login_with_auth_code())
        assert state.error == PLATFORM_AUTH_UNAVAILABLE
        assert state.loading is False
        assert endpoint.requests == []

    def test_success(self):
        endpoint = FakeEndpoint(body={"user": {"displayName": "Zainab"}})
        provider = CallbackProvider(result={"authCode": "code-9"})
        flow = make_flow(endpoint, provider=provider)
        provider.flow = flow
        state = asyncio.run(flow.login_with_auth_code())
        assert state.status == AuthStatus.AUTHENTICATED
        assert state.display_name == "Zainab"
        assert state.loading is False
        assert json.loads(endpoint.requests[0].content) == {"token": "code-9"}
        # loading was set while the platform call was in flight
        assert provider.seen_states[0].loading is True
        assert provider.seen_states[0].error is None

    def test_platform_fail_callback(self):
        endpoint = FakeEndpoint(body={})
        provider = CallbackProvider(failure={"authErrorScopes": {"auth_base": "denied"}})
        flow = make_flow(endpoint, provider=provider)
        state = asyncio.run(flow.login_with_auth_code())
        assert state.status == AuthStatus.AUTH_FAILED
        assert state.error == '{"auth_base": "denied"}'
        assert state.loading is False
        assert endpoint.requests == []

    def test_empty_auth_code(self):
        endpoint = FakeEndpoint(body={})
        flow = make_flow(endpoint, provider=CallbackProvider(result={}))
        state = asyncio.run(flow.login_with_auth_code())
        assert state.error == NO_AUTH_CODE
        assert endpoint.requests == []

    def test_exchange_failure_resets_loading(self):
        endpoint = FakeEndpoint(status_code=500, text="boom")
        flow = make_flow(endpoint, provider=CallbackProvider(result={"token": "t"}))
        state = asyncio.run(flow.login_with_auth_code())
        assert state.status == AuthStatus.AUTH_FAILED
        assert "500" in state.error
        assert state.loading is False
        assert flow.can_login is True

    def test_retry_clears_previous_error(self):
        endpoint = FakeEndpoint(status_code=401, text="invalid")
        flow = make_flow(endpoint, provider=CallbackProvider(result={"authCode": "c"}))
        asyncio.run(flow.login_with_auth_code())
        endpoint.status_code, endpoint.text, endpoint.body = 200, None, {"user": {"name": "Ali"}}
        state = asyncio.run(flow.login_with_auth_code())
        assert state.error is None
        assert state.user == {"name": "Ali"}

    def test_second_login_ignored_while_in_flight(self):
        endpoint = FakeEndpoint(body={"user": {"name": "Ali"}})
        provider = CallbackProvider(result={"authCode": "c"})
        flow = make_flow(endpoint, provider=provider)

        async def scenario():
            gate = asyncio.Event()
            original = flow._auth_client.exchange_token

            async def slow_exchange(token):
                await gate.wait()
                return await original(token)

            flow._auth_client.exchange_token = slow_exchange
            first = asyncio.create_task(flow.login_with_auth_code())
            await asyncio.sleep(0)
            assert flow.can_login is False
            second = await flow.login_with_auth_code()
            gate.set()
            return second, await first

        second, first = asyncio.run(scenario())
        assert provider.calls == 1
        assert second.loading is True
        assert first.status == AuthStatus.AUTHENTICATED
        assert len(endpoint.requests) == 1


class TestCreateAppComponents:

    def test_standalone(self):
        storage = InMemoryStorage()
        form_store, auth_flow, bridge = create_app_components(
            storage=storage,
            auth_client=FakeEndpoint(body={}).client(),
        )
        assert isinstance(form_store, FormStore)
        assert isinstance(bridge, NullHostBridge)
        assert auth_flow.host is bridge
        assert asyncio.run(auth_flow.startup()) == AuthState()

    def test_embedded(self):
        endpoint = FakeEndpoint(body={"user": {"name": "Ali"}})
        host = FakeHost(token="tok")
        _, auth_flow, bridge = create_app_components(
            host_object=host,
            storage=InMemoryStorage(),
            auth_client=endpoint.client(),
        )
        assert bridge.is_present is True
        bridge.ready()
        assert host.ready_calls == 1
        assert asyncio.run(auth_flow.startup()).user == {"name": "Ali"}

    def test_client_id_scopes_the_slot(self):
        storage = InMemoryStorage()
        client = FakeEndpoint(body={}).client()
        alice, _, _ = create_app_components(storage=storage, auth_client=client, client_id="alice-0001")
        bob, _, _ = create_app_components(storage=storage, auth_client=client, client_id="bob-00001")
        assert alice.storage_key == f"{DEFAULT_STORAGE_KEY}.alice-0001"
        alice.set_field(alice.load(), "salary", "987654")
        assert bob.load().salary == ""
        assert alice.load().salary == "987654"

    def test_client_slots_on_configured_data_dir(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("STORAGE_DATA_DIR", str(tmp_path / "data"))
        client = FakeEndpoint(body={}).client()
        alice, _, _ = create_app_components(
            settings=Settings(), auth_client=client, client_id="alice-0001"
        )
        bob, _, _ = create_app_components(
            settings=Settings(), auth_client=client, client_id="bob-00001"
        )
        assert isinstance(alice._storage, JsonFileStorage)
        alice.set_field(alice.load(), "food", "100")
        assert bob.load().food == ""

    def test_without_client_id_nothing_is_shared(self, monkeypatch, tmp_path):
        """No client id: the form stays in this session's memory."""
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("STORAGE_DATA_DIR", str(tmp_path / "data"))
        client = FakeEndpoint(body={}).client()
        first, _, _ = create_app_components(settings=Settings(), auth_client=client)
        second, _, _ = create_app_components(settings=Settings(), auth_client=client)
        assert isinstance(first._storage, InMemoryStorage)
        first.set_field(first.load(), "salary", "1")
        assert second.load().salary == ""
        assert not (tmp_path / "data").exists()

    def test_malformed_client_id_is_rejected(self):
        with pytest.raises(InvalidKeyError):
            create_app_components(
                storage=InMemoryStorage(),
                auth_client=FakeEndpoint(body={}).client(),
                client_id="../x",
            )
