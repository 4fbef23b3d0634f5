"""
Unit tests for the Token Issuer
"""

from datetime import timedelta

import pytest

from harbor_auth.app.services.key_provider import StaticKeyProvider
from harbor_auth.app.services.security_settings import StrictVerification
from harbor_auth.app.services.token_issuer import (
    TokenIssuer,
    hash_refresh_secret,
    new_refresh_token,
    split_refresh_token,
)
from harbor_auth.app.services.token_validator import TokenValidator
from harbor_auth.domain.entities import Role, Session


def test_new_refresh_token_stores_only_hash():
    token, secret_hash = new_refresh_token("session-1")

    session_id, secret = split_refresh_token(token)
    assert session_id == "session-1"
    assert secret_hash == hash_refresh_secret(secret)
    assert secret not in secret_hash


def test_new_refresh_tokens_are_unique():
    tokens = {new_refresh_token("session-1")[0] for _ in range(50)}

    assert len(tokens) == 50


@pytest.mark.parametrize("token", ["", "no-separator", ".secret", "session.", None, 123])
def test_split_refresh_token_rejects_garbage(token):
    assert split_refresh_token(token) is None


@pytest.mark.asyncio
async def test_access_token_round_trips_through_validator(clock):
    issuer = TokenIssuer("issuer-secret", "harbor-auth", "harbor-api", ttl=timedelta(minutes=15), clock=clock)
    session = Session(
        subject_id="sub-admin-1",
        email="harbormaster@harbormarine.com",
        role=Role.admin,
        groups=["admins"],
        mfa_enrolled=True,
        expires_at=clock() + timedelta(hours=8),
    )
    validator = TokenValidator(
        StrictVerification(issuer="harbor-auth", audience="harbor-api"),
        StaticKeyProvider("issuer-secret"),
        clock=clock,
    )

    result = await validator.validate(issuer.issue_access_token(session))

    assert result.is_ok()
    claims = result.value
    assert claims.subject_id == "sub-admin-1"
    assert claims.session_id == session.id
    assert claims.role == Role.admin
    assert claims.mfa_enrolled is True
    assert claims.expires_at == clock() + timedelta(minutes=15)
    assert issuer.expires_in == 900
