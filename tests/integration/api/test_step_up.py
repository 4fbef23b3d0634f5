import pytest
from httpx import AsyncClient

from tests.utils.headers import bearer


@pytest.mark.asyncio
async def test_step_up_with_valid_code(client: AsyncClient, login_as, audit_trail):
    tokens = await login_as("admin")

    response = await client.post("/auth/step-up", json={"code": "246810"}, headers=bearer(tokens))

    assert response.status_code == 200
    data = response.json()
    assert data["session_id"] == tokens["session_id"]
    assert data["mfa_verified"] is True
    assert data["mfa_expires_at"].startswith("2026-03-02T13:00:00")

    me = await client.get("/auth/me", headers=bearer(tokens))
    assert me.json()["step_up"] == "satisfied"

    verified = [e for e in await audit_trail("sub-admin-1") if e.action == "MFA_VERIFY"]
    assert verified[0].outcome == "success"


@pytest.mark.asyncio
async def test_step_up_with_wrong_code(client: AsyncClient, login_as, audit_trail):
    tokens = await login_as("admin")

    response = await client.post("/auth/step-up", json={"code": "000000"}, headers=bearer(tokens))

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "INVALID_MFA_CODE"
    attempts = [e for e in await audit_trail("sub-admin-1") if e.action == "MFA_VERIFY"]
    assert attempts[0].outcome == "failure"


@pytest.mark.asyncio
async def test_step_up_without_second_factor(client: AsyncClient, login_as):
    tokens = await login_as("manager_without_mfa")

    response = await client.post("/auth/step-up", json={"code": "123456"}, headers=bearer(tokens))

    assert response.status_code == 403
    assert response.json()["error"]["code"] == "STEP_UP_SETUP_REQUIRED"


@pytest.mark.asyncio
async def test_step_up_expires(client: AsyncClient, login_as, clock):
    tokens = await login_as("admin")
    await client.post("/auth/step-up", json={"code": "246810"}, headers=bearer(tokens))

    clock.advance(minutes=61)
    refreshed = await client.post(
        "/auth/refresh",
        json={"refresh_token": tokens["refresh_token"]},
        headers={"X-Device-Fingerprint": "fp-7c1e9a"},
    )
    me = await client.get("/auth/me", headers=bearer(refreshed.json()))

    assert me.json()["step_up"] == "verification_required"
