"""Tests for the authenticated request protocol: pre-flight refresh, bearer header, 401 retry-once."""
import asyncio

import httpx
import pytest

from session_client.authenticated import AuthenticatedClient
from session_client.errors import AuthError, AuthErrorCode
from session_client.tests.fakes import API_URL, reply, token_body

LOGIN = "/api/auth/login"
REFRESH = "/api/auth/refresh"


def bearer(request: httpx.Request) -> str | None:
    return request.headers.get("Authorization")


def accepts(token: str):
    """Protected endpoint that only accepts one access token."""

    def _respond(request: httpx.Request) -> httpx.Response:
        if bearer(request) == f"Bearer {token}":
            return httpx.Response(200, json={"message": "Authenticated"})
        return httpx.Response(401, json={"detail": {"error": "invalid_token"}})

    return _respond


@pytest.fixture
def api(session):
    return AuthenticatedClient(session)


async def login(session, provider):
    provider.on("POST", LOGIN, reply(200, token_body()))
    await session.login("a@b.com", "password1")


@pytest.mark.asyncio
async def test_attaches_bearer_and_keeps_caller_headers(session, provider, api):
    await login(session, provider)
    provider.on("GET", "/me", reply(200, {"ok": True}))

    r = await api.get(API_URL, headers={"X-Trace": "t1"})

    assert r.status_code == 200
    sent = provider.calls("/me")[0]
    assert bearer(sent) == "Bearer at-1"
    assert sent.headers["X-Trace"] == "t1"


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [403, 404, 500])
async def test_non_401_returned_unmodified(session, provider, api, status):
    await login(session, provider)
    provider.on("POST", "/me", reply(status, {"error": "x"}))
    r = await api.post(API_URL, json={"a": 1})
    assert r.status_code == status
    assert provider.calls(REFRESH) == []


@pytest.mark.asyncio
async def test_expiring_token_refreshed_before_call(session, provider, api, clock):
    await login(session, provider)
    session.store.scheduler.disarm()
    clock.advance(3540)
    provider.on("POST", REFRESH, reply(200, token_body("at-2", refresh_token="rt-2")))
    provider.on("GET", "/me", accepts("at-2"))

    r = await api.get(API_URL)

    assert r.status_code == 200
    assert len(provider.calls(REFRESH)) == 1
    assert len(provider.calls("/me")) == 1


@pytest.mark.asyncio
async def test_preflight_refresh_failure_is_session_expired(session, provider, api, clock):
    await login(session, provider)
    session.store.scheduler.disarm()
    clock.advance(3600)
    provider.on("POST", REFRESH, reply(401, {"detail": {"error": "invalid_grant"}}))

    with pytest.raises(AuthError) as exc:
        await api.get(API_URL)

    assert exc.value.code is AuthErrorCode.SESSION_EXPIRED
    assert provider.calls("/me") == []
    assert not session.is_authenticated()


@pytest.mark.asyncio
async def test_anonymous_request_is_session_expired(provider, api):
    with pytest.raises(AuthError) as exc:
        await api.get(API_URL)
    assert exc.value.code is AuthErrorCode.SESSION_EXPIRED
    assert provider.requests == []


@pytest.mark.asyncio
async def test_401_refreshes_and_retries_once(session, provider, api):
    await login(session, provider)
    provider.on("GET", "/me", accepts("at-2"))
    provider.on("POST", REFRESH, reply(200, token_body("at-2", refresh_token="rt-2")))

    r = await api.get(API_URL)

    assert r.status_code == 200
    calls = provider.calls("/me")
    assert [bearer(c) for c in calls] == ["Bearer at-1", "Bearer at-2"]


@pytest.mark.asyncio
async def test_second_401_is_unauthorized(session, provider, api):
    await login(session, provider)
    provider.on("GET", "/me", reply(401))
    provider.on("POST", REFRESH, reply(200, token_body("at-2", refresh_token="rt-2")))

    with pytest.raises(AuthError) as exc:
        await api.get(API_URL)

    assert exc.value.code is AuthErrorCode.UNAUTHORIZED
    assert len(provider.calls("/me")) == 2
    assert len(provider.calls(REFRESH)) == 1


@pytest.mark.asyncio
async def test_401_with_failed_refresh_is_unauthorized(session, provider, api):
    await login(session, provider)
    provider.on("GET", "/me", reply(401))
    provider.on("POST", REFRESH, reply(503))

    with pytest.raises(AuthError) as exc:
        await api.get(API_URL)

    assert exc.value.code is AuthErrorCode.UNAUTHORIZED
    assert len(provider.calls("/me")) == 1


@pytest.mark.asyncio
async def test_concurrent_401s_share_one_refresh(session, provider, api):
    await login(session, provider)
    provider.on("GET", "/me", accepts("at-2"))

    async def slow_refresh(request):
        await asyncio.sleep(0.01)
        return httpx.Response(200, json=token_body("at-2", refresh_token="rt-2"))

    provider.on("POST", REFRESH, slow_refresh)

    results = await asyncio.gather(*(api.get(API_URL) for _ in range(3)))

    assert [r.status_code for r in results] == [200, 200, 200]
    assert len(provider.calls(REFRESH)) == 1


@pytest.mark.asyncio
async def test_concurrent_calls_while_expiring_share_one_refresh(session, provider, api, clock):
    await login(session, provider)
    session.store.scheduler.disarm()
    clock.advance(3540)
    provider.on("GET", "/me", accepts("at-2"))

    async def slow_refresh(request):
        await asyncio.sleep(0.01)
        return httpx.Response(200, json=token_body("at-2", refresh_token="rt-2"))

    provider.on("POST", REFRESH, slow_refresh)

    results = await asyncio.gather(*(api.get(API_URL) for _ in range(5)))

    assert [r.status_code for r in results] == [200] * 5
    assert len(provider.calls(REFRESH)) == 1
    assert len(provider.calls("/me")) == 5


@pytest.mark.asyncio
async def test_timed_out_refresh_keeps_valid_token_usable(session, provider, api, clock):
    """Ten minutes left on the token: a timed-out refresh leaves the session usable."""
    await login(session, provider)
    clock.advance(3540 - 600)
    provider.on("POST", REFRESH, httpx.ReadTimeout("timed out"))
    provider.on("GET", "/me", accepts("at-1"))

    assert await session.refresh() is False
    assert session.store.last_error_code is AuthErrorCode.TIMEOUT
    assert session.is_authenticated()

    r = await api.get(API_URL)
    assert r.status_code == 200
    assert len(provider.calls(REFRESH)) == 1
