import pytest
from httpx import AsyncClient

from tests.fixtures.json_loader import TestDataLoader
from tests.utils.json_compare import exclude_keys


@pytest.mark.asyncio
async def test_successful_login(client: AsyncClient, login_as, audit_trail):
    """A customer logs in and receives a session-bound token pair"""
    data = await login_as("customer")

    assert data["access_token"].count(".") == 2
    assert data["refresh_token"].startswith(data["session_id"] + ".")
    assert exclude_keys(
        data, {"access_token", "refresh_token", "session_id", "session_expires_at"}
    ) == {
        "token_type": "Bearer",
        "expires_in": 900,
        "role": "user",
        "permissions": [],
        "step_up": "not_required",
        "evicted_session_ids": [],
        "audit_recorded": True,
    }
    assert data["session_expires_at"].startswith("2026-03-03T12:00:00")

    events = await audit_trail("sub-customer-1")
    assert [e.action for e in events] == ["LOGIN"]
    assert events[0].resource == f"session:{data['session_id']}"


@pytest.mark.asyncio
async def test_login_resolves_staff_role(login_as):
    data = await login_as("support")

    assert data["role"] == "support"
    assert data["permissions"] == ["content_moderation", "support_access"]
    assert data["step_up"] == "not_required"


@pytest.mark.asyncio
async def test_privileged_login_reports_step_up(login_as):
    admin = await login_as("admin")
    manager = await login_as("manager_without_mfa")

    assert admin["step_up"] == "verification_required"
    assert manager["step_up"] == "setup_required"


@pytest.mark.asyncio
async def test_login_invalid_credentials(client: AsyncClient, audit_trail):
    response = await client.post(
        "/auth/login", json={"email": "skipper@example.com", "password": "wrong-password"}
    )

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "INVALID_CREDENTIALS"

    failed = [e for e in await audit_trail() if e.action == "LOGIN_FAILED"]
    assert len(failed) == 1
    assert failed[0].outcome == "failure"
    assert failed[0].event_metadata["email"] == "s*****r@example.com"


@pytest.mark.asyncio
async def test_login_unknown_account(client: AsyncClient):
    response = await client.post(
        "/auth/login", json={"email": "nobody@example.com", "password": "whatever"}
    )

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "INVALID_CREDENTIALS"


@pytest.mark.asyncio
async def test_login_rejects_malformed_email(client: AsyncClient):
    response = await client.post("/auth/login", json={"email": "not-an-email", "password": "x"})

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_account_locked_after_repeated_failures(client: AsyncClient, audit_trail):
    user = TestDataLoader.user("customer")
    for _ in range(5):
        response = await client.post(
            "/auth/login", json={"email": user["email"], "password": "wrong-password"}
        )
        assert response.status_code == 401

    # Even the correct password is refused while locked out
    response = await client.post(
        "/auth/login", json={"email": user["email"], "password": user["password"]}
    )

    assert response.status_code == 423
    assert response.json()["error"]["code"] == "LOCKED_OUT"
    assert "ACCOUNT_LOCKED" in [e.action for e in await audit_trail()]


@pytest.mark.asyncio
async def test_lockout_expires(client: AsyncClient, clock):
    user = TestDataLoader.user("customer")
    for _ in range(5):
        await client.post("/auth/login", json={"email": user["email"], "password": "nope"})

    clock.advance(minutes=16)
    response = await client.post(
        "/auth/login", json={"email": user["email"], "password": user["password"]}
    )

    assert response.status_code == 200


@pytest.mark.asyncio
async def test_origin_rate_limited(client: AsyncClient):
    headers = {"X-Forwarded-For": "192.0.2.50"}
    for i in range(20):
        response = await client.post(
            "/auth/login",
            json={"email": f"guess{i}@example.com", "password": "guess"},
            headers=headers,
        )
        assert response.status_code == 401

    user = TestDataLoader.user("customer")
    response = await client.post(
        "/auth/login",
        json={"email": user["email"], "password": user["password"]},
        headers=headers,
    )

    assert response.status_code == 429
    assert response.json()["error"]["code"] == "RATE_LIMITED"

    # Another origin is unaffected
    response = await client.post(
        "/auth/login",
        json={"email": user["email"], "password": user["password"]},
        headers={"X-Forwarded-For": "192.0.2.51"},
    )
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_concurrent_session_limit_evicts_oldest(login_as, clock):
    sessions = []
    for _ in range(5):
        sessions.append(await login_as("customer"))
        clock.advance(minutes=1)

    data = await login_as("customer")

    assert data["evicted_session_ids"] == [sessions[0]["session_id"]]
