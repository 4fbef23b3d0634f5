import pytest
from httpx import AsyncClient

from tests.utils.headers import bearer


@pytest.mark.asyncio
async def test_me_returns_enriched_identity(client: AsyncClient, login_as):
    tokens = await login_as("admin")

    response = await client.get("/auth/me", headers=bearer(tokens))

    assert response.status_code == 200
    data = response.json()
    assert data["subject_id"] == "sub-admin-1"
    assert data["email"] == "harbormaster@harbormarine.com"
    assert data["role"] == "admin"
    assert data["groups"] == ["admins"]
    assert "audit_log_view" in data["permissions"]
    assert "system_config" in data["permissions"]
    assert data["session_id"] == tokens["session_id"]
    assert data["step_up"] == "verification_required"


@pytest.mark.asyncio
async def test_me_without_token(client: AsyncClient):
    response = await client.get("/auth/me")

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "UNAUTHORIZED"


@pytest.mark.asyncio
async def test_me_with_malformed_token(client: AsyncClient):
    response = await client.get("/auth/me", headers={"Authorization": "Bearer not-a-jwt"})

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "MALFORMED_TOKEN"


@pytest.mark.asyncio
async def test_me_with_expired_access_token(client: AsyncClient, login_as, clock):
    tokens = await login_as("customer")
    clock.advance(minutes=15)

    response = await client.get("/auth/me", headers=bearer(tokens))

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "EXPIRED"


@pytest.mark.asyncio
async def test_me_with_forged_token(client: AsyncClient, login_as):
    tokens = await login_as("customer")
    header, payload, signature = tokens["access_token"].split(".")
    forged = {"access_token": f"{header}.{payload}.{signature[::-1]}"}

    response = await client.get("/auth/me", headers=bearer(forged))

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "INVALID_SIGNATURE"


@pytest.mark.asyncio
async def test_me_after_logout(client: AsyncClient, login_as, audit_trail):
    tokens = await login_as("customer")

    logout = await client.post("/auth/logout", headers=bearer(tokens))
    assert logout.status_code == 200
    assert logout.json() == {
        "message": "Logged out",
        "session_id": tokens["session_id"],
        "audit_recorded": True,
    }

    response = await client.get("/auth/me", headers=bearer(tokens))
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "UNAUTHORIZED"

    revoked = [e for e in await audit_trail("sub-customer-1") if e.action == "SESSION_REVOKED"]
    assert revoked[0].event_metadata["reason"] == "logout"
