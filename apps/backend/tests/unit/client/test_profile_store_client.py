"""
Name: Profile Store HTTP Client Tests

Responsibilities:
  - Fresh bearer token on every request (including retries)
  - Status -> ProfileError mapping; 404 on /auth/me means "absent"
  - Transient failures retried for reads/upserts, never for moderation
"""

import json
from datetime import datetime, timezone
from uuid import uuid4

import httpx
import pytest
from tesoros.client.profile_store import ProfileStoreClient
from tesoros.crosscutting.exceptions import (
    NotAuthenticatedError,
    ProfileConflictError,
    ProfileNetworkError,
    ProfileResponseError,
    ProfileValidationError,
)
from tesoros.domain.entities import UserRole
from tesoros.domain.profile_policy import ModerationAction

pytestmark = pytest.mark.unit

BASE_URL = "http://store.test/api"


def _profile_json(**overrides):
    body = {
        "id": str(uuid4()),
        "subjectId": "sub-1",
        "email": "ana@example.com",
        "name": "Ana",
        "role": "buyer",
        "isApproved": True,
        "needsRoleSelection": False,
        "isActive": True,
        "createdAt": datetime.now(timezone.utc).isoformat(),
    }
    body.update(overrides)
    return body


class _Tokens:
    def __init__(self) -> None:
        self.issued = 0

    async def __call__(self) -> str:
        self.issued += 1
        return f"token-{self.issued}"


def _client(handler, tokens=None, attempts=3) -> ProfileStoreClient:
    return ProfileStoreClient(
        base_url=BASE_URL + "/",
        token_source=tokens or _Tokens(),
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        retry_max_attempts=attempts,
        retry_base_delay=0,
        retry_max_delay=0,
    )


@pytest.mark.asyncio
async def test_get_my_profile_parses_camel_case():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/auth/me"
        assert request.headers["Authorization"] == "Bearer token-1"
        return httpx.Response(200, json=_profile_json(role="seller", isApproved=False))

    profile = await _client(handler).get_my_profile()

    assert profile.role == UserRole.SELLER
    assert profile.is_pending_approval


@pytest.mark.asyncio
async def test_legacy_role_is_normalized():
    handler = lambda request: httpx.Response(  # noqa: E731
        200, json=_profile_json(role="pending_vendor", isApproved=True)
    )
    profile = await _client(handler).get_my_profile()
    assert profile.role == UserRole.SELLER
    assert profile.is_approved is False


@pytest.mark.asyncio
async def test_missing_profile_is_none():
    handler = lambda request: httpx.Response(  # noqa: E731
        404, json={"detail": "El usuario aún no tiene perfil.", "code": "NOT_FOUND"}
    )
    assert await _client(handler).get_my_profile() is None


@pytest.mark.asyncio
async def test_transient_failure_is_retried_with_fresh_token():
    tokens = _Tokens()
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.headers["Authorization"])
        if len(seen) < 3:
            return httpx.Response(503, json={"detail": "down"})
        return httpx.Response(201, json=_profile_json())

    profile = await _client(handler, tokens).register_profile(
        name="Ana", role=UserRole.BUYER
    )

    assert profile.name == "Ana"
    assert seen == ["Bearer token-1", "Bearer token-2", "Bearer token-3"]


@pytest.mark.asyncio
async def test_network_error_surfaces_after_retries():
    calls = {"n": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        calls["n"] += 1
        raise httpx.ConnectTimeout("timeout", request=request)

    with pytest.raises(ProfileNetworkError):
        await _client(handler, attempts=2).get_my_profile()
    assert calls["n"] == 2


@pytest.mark.asyncio
async def test_register_sends_camel_case_body_without_nulls():
    def handler(request: httpx.Request) -> httpx.Response:
        assert json.loads(request.content) == {"name": "Ana", "role": "seller"}
        return httpx.Response(201, json=_profile_json(role="seller", isApproved=False))

    await _client(handler).register_profile(name="Ana", role=UserRole.SELLER)


@pytest.mark.asyncio
async def test_update_profile_patch_body():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "PUT"
        assert json.loads(request.content) == {
            "role": "buyer",
            "needsRoleSelection": False,
        }
        return httpx.Response(200, json=_profile_json())

    await _client(handler).update_profile(
        role=UserRole.BUYER, needs_role_selection=False
    )


@pytest.mark.asyncio
async def test_invalid_input_fails_locally():
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    with pytest.raises(ProfileValidationError):
        await _client(handler).register_profile(name="", role=UserRole.BUYER)


@pytest.mark.asyncio
async def test_moderation_is_not_retried():
    calls = {"n": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        calls["n"] += 1
        return httpx.Response(503, json={"detail": "down"})

    with pytest.raises(ProfileNetworkError):
        await _client(handler).moderate(uuid4(), ModerationAction.APPROVE)
    assert calls["n"] == 1


@pytest.mark.asyncio
async def test_conflict_carries_detail():
    handler = lambda request: httpx.Response(  # noqa: E731
        409, json={"detail": "La acción no aplica", "code": "CONFLICT"}
    )
    with pytest.raises(ProfileConflictError) as exc_info:
        await _client(handler).moderate(uuid4(), ModerationAction.REJECT, "motivo")
    assert exc_info.value.status_code == 409
    assert exc_info.value.message == "La acción no aplica"


@pytest.mark.asyncio
async def test_list_users_query_params():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["role"] == "seller"
        assert request.url.params["pending"] == "true"
        return httpx.Response(200, json=[_profile_json(role="seller", isApproved=False)])

    users = await _client(handler).list_users(role=UserRole.SELLER, pending_only=True)
    assert len(users) == 1


@pytest.mark.asyncio
async def test_unauthenticated_is_mapped():
    handler = lambda request: httpx.Response(401, json={"detail": "Token inválido."})  # noqa: E731
    with pytest.raises(NotAuthenticatedError):
        await _client(handler).list_notifications()


@pytest.mark.asyncio
async def test_unreadable_profile_body_is_a_profile_error():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={"unexpected": 1})

    with pytest.raises(ProfileResponseError) as exc_info:
        await _client(handler).get_my_profile()

    assert exc_info.value.status_code == 200
    assert exc_info.value.transient is False
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_non_json_body_is_a_profile_error():
    handler = lambda request: httpx.Response(200, text="<html>proxy</html>")  # noqa: E731
    with pytest.raises(ProfileResponseError):
        await _client(handler).get_my_profile()


@pytest.mark.asyncio
async def test_list_endpoint_rejects_non_list_body():
    handler = lambda request: httpx.Response(200, json={"items": []})  # noqa: E731
    with pytest.raises(ProfileResponseError):
        await _client(handler).list_users()
