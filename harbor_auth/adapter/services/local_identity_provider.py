"""
Local Identity Provider

Development stand-in for the managed identity provider. Users come from
ApplicationConfig.LOCAL_USERS:

    LOCAL_USERS:
      - email: admin@harbormarine.com
        password_hash: "$2b$12$..."
        subject_id: local-admin
        groups: [admins]
        mfa_code: "123456"

ID tokens are HS256-signed with IDP_LOCAL_SECRET and carry the same claims
the managed provider emits (cognito:groups, custom:mfa_enabled).
"""

import hmac
import logging
from datetime import UTC, datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

import bcrypt
from jose import jwt

from harbor_auth.app.services.identity_provider import IdentityTokens, IIdentityProvider
from harbor_auth.domain.base import utcnow
from harbor_auth.domain.errors import AuthErrorCode
from harbor_auth.libs.result import Error, Result, Return

logger = logging.getLogger(__name__)

# Compared against when the account is unknown so timing does not reveal it
_DUMMY_HASH = bcrypt.hashpw(b"dummy_password", bcrypt.gensalt(4))


class LocalIdentityProvider(IIdentityProvider):
    def __init__(
        self,
        users: List[Dict[str, Any]],
        secret: str,
        issuer: str,
        client_id: str,
        token_ttl: timedelta = timedelta(hours=1),
        clock: Callable[[], datetime] = utcnow,
    ):
        self.users = {str(u["email"]).strip().lower(): u for u in users or []}
        self.secret = secret
        self.issuer = issuer
        self.client_id = client_id
        self.token_ttl = token_ttl
        self.clock = clock

    def _find_by_subject(self, subject_id: str) -> Optional[Dict[str, Any]]:
        for user in self.users.values():
            if self._subject_of(user) == subject_id:
                return user
        return None

    @staticmethod
    def _subject_of(user: Dict[str, Any]) -> str:
        return str(user.get("subject_id") or user["email"])

    async def authenticate(self, email: str, password: str) -> Result[IdentityTokens]:
        user = self.users.get((email or "").strip().lower())

        if user is None:
            bcrypt.checkpw(b"dummy_password", _DUMMY_HASH)
            return Return.err(
                Error(AuthErrorCode.INVALID_CREDENTIALS, "Invalid email or password")
            )

        password_valid = bcrypt.checkpw(
            (password or "").encode(), str(user["password_hash"]).encode()
        )
        if not password_valid:
            return Return.err(
                Error(AuthErrorCode.INVALID_CREDENTIALS, "Invalid email or password")
            )

        now = self.clock().replace(tzinfo=UTC)
        claims = {
            "sub": self._subject_of(user),
            "email": user["email"],
            "cognito:groups": list(user.get("groups", [])),
            "custom:mfa_enabled": "true" if user.get("mfa_code") else "false",
            "token_use": "id",
            "iss": self.issuer,
            "aud": self.client_id,
            "iat": int(now.timestamp()),
            "exp": int((now + self.token_ttl).timestamp()),
        }
        id_token = jwt.encode(claims, self.secret, algorithm="HS256")
        return Return.ok(IdentityTokens(id_token=id_token))

    async def verify_mfa(self, subject_id: str, code: str) -> Result[bool]:
        user = self._find_by_subject(subject_id)
        if user is None or not user.get("mfa_code"):
            return Return.err(
                Error(AuthErrorCode.STEP_UP_SETUP_REQUIRED, "No second factor is configured")
            )
        return Return.ok(hmac.compare_digest(str(user["mfa_code"]), str(code or "")))
