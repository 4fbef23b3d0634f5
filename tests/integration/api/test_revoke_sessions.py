"""
Integration tests for session listing and revocation
"""

import pytest
from httpx import AsyncClient

from tests.utils.headers import bearer


@pytest.mark.asyncio
async def test_list_sessions_marks_current(client: AsyncClient, login_as, clock):
    phone = await login_as("customer", fingerprint="fp-phone")
    clock.advance(minutes=1)
    laptop = await login_as("customer", fingerprint="fp-laptop")

    response = await client.get("/sessions", headers=bearer(laptop))

    assert response.status_code == 200
    sessions = response.json()["sessions"]
    assert [s["session_id"] for s in sessions] == [laptop["session_id"], phone["session_id"]]
    assert [s["current"] for s in sessions] == [True, False]
    assert "refresh_token_hash" not in sessions[0]


@pytest.mark.asyncio
async def test_revoke_own_session(client: AsyncClient, login_as):
    phone = await login_as("customer", fingerprint="fp-phone")
    laptop = await login_as("customer", fingerprint="fp-laptop")

    response = await client.delete(f"/sessions/{phone['session_id']}", headers=bearer(laptop))

    assert response.status_code == 200
    data = response.json()
    assert data["revoked_count"] == 1
    assert data["session_ids"] == [phone["session_id"]]
    assert (await client.get("/auth/me", headers=bearer(phone))).status_code == 401

    again = await client.delete(f"/sessions/{phone['session_id']}", headers=bearer(laptop))
    assert again.status_code == 200
    assert again.json()["revoked_count"] == 0


@pytest.mark.asyncio
async def test_revoke_unknown_session(client: AsyncClient, login_as):
    tokens = await login_as("customer")

    response = await client.delete("/sessions/does-not-exist", headers=bearer(tokens))

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "SESSION_NOT_FOUND"


@pytest.mark.asyncio
async def test_customer_cannot_revoke_someone_elses_session(client: AsyncClient, login_as):
    admin = await login_as("admin")
    customer = await login_as("customer")

    response = await client.delete(f"/sessions/{admin['session_id']}", headers=bearer(customer))

    assert response.status_code == 403
    assert response.json()["error"]["code"] == "FORBIDDEN"


@pytest.mark.asyncio
async def test_support_cannot_revoke_other_subjects(client: AsyncClient, login_as):
    await login_as("customer")
    support = await login_as("support")

    response = await client.post(
        "/sessions/revoke-all", json={"subject_id": "sub-customer-1"}, headers=bearer(support)
    )

    assert response.status_code == 403
    assert response.json()["error"]["code"] == "FORBIDDEN"


@pytest.mark.asyncio
async def test_revoke_other_sessions(client: AsyncClient, login_as):
    first = await login_as("customer", fingerprint="fp-1")
    second = await login_as("customer", fingerprint="fp-2")
    current = await login_as("customer", fingerprint="fp-3")

    response = await client.post("/sessions/revoke-others", headers=bearer(current))

    assert response.status_code == 200
    data = response.json()
    assert data["revoked_count"] == 2
    assert set(data["session_ids"]) == {first["session_id"], second["session_id"]}
    assert (await client.get("/auth/me", headers=bearer(current))).status_code == 200
    assert (await client.get("/auth/me", headers=bearer(first))).status_code == 401


@pytest.mark.asyncio
async def test_revoke_all_own_sessions(client: AsyncClient, login_as):
    other = await login_as("customer", fingerprint="fp-1")
    current = await login_as("customer", fingerprint="fp-2")

    response = await client.post("/sessions/revoke-all", json={}, headers=bearer(current))

    assert response.status_code == 200
    assert response.json()["revoked_count"] == 2
    assert (await client.get("/auth/me", headers=bearer(current))).status_code == 401
    assert (await client.get("/auth/me", headers=bearer(other))).status_code == 401


@pytest.mark.asyncio
async def test_admin_revokes_customer_sessions_after_step_up(
    client: AsyncClient, login_as, audit_trail
):
    customer = await login_as("customer")
    admin = await login_as("admin")

    before_step_up = await client.post(
        "/sessions/revoke-all", json={"subject_id": "sub-customer-1"}, headers=bearer(admin)
    )
    assert before_step_up.status_code == 403
    assert before_step_up.json()["error"]["code"] == "STEP_UP_VERIFICATION_REQUIRED"

    step_up = await client.post("/auth/step-up", json={"code": "246810"}, headers=bearer(admin))
    assert step_up.status_code == 200

    response = await client.post(
        "/sessions/revoke-all", json={"subject_id": "sub-customer-1"}, headers=bearer(admin)
    )

    assert response.status_code == 200
    assert response.json()["session_ids"] == [customer["session_id"]]
    assert (await client.get("/auth/me", headers=bearer(customer))).status_code == 401
    assert (await client.get("/auth/me", headers=bearer(admin))).status_code == 200

    revoked = [e for e in await audit_trail("sub-admin-1") if e.action == "SESSION_REVOKED"]
    assert revoked[0].resource == f"session:{customer['session_id']}"
    assert revoked[0].event_metadata["subject_id"] == "sub-customer-1"
