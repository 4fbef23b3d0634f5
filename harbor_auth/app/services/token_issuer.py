"""
Token Issuer

Signs the short-lived access tokens bound to a session and mints the opaque
refresh tokens that rotate on every refresh.
"""

import hashlib
import secrets
from datetime import UTC, datetime, timedelta
from typing import Callable, Optional, Tuple

from jose import jwt

from harbor_auth.domain.base import utcnow
from harbor_auth.domain.entities import Session


def hash_refresh_secret(secret: str) -> str:
    return hashlib.sha256(secret.encode()).hexdigest()


def new_refresh_token(session_id: str) -> Tuple[str, str]:
    """
    Generate a refresh token for a session.

    Returns:
        (token, secret_hash) - token is "<session_id>.<secret>", only the hash is stored
    """
    secret = secrets.token_urlsafe(32)
    return f"{session_id}.{secret}", hash_refresh_secret(secret)


def split_refresh_token(token: str) -> Optional[Tuple[str, str]]:
    if not isinstance(token, str):
        return None
    # Session ids are urlsafe base64 and never contain "."
    session_id, sep, secret = token.partition(".")
    if not sep or not session_id or not secret:
        return None
    return session_id, secret


class TokenIssuer:
    def __init__(
        self,
        secret: str,
        issuer: str,
        audience: str,
        ttl: timedelta = timedelta(minutes=15),
        clock: Callable[[], datetime] = utcnow,
    ):
        self.secret = secret
        self.issuer = issuer
        self.audience = audience
        self.ttl = ttl
        self.clock = clock

    @property
    def expires_in(self) -> int:
        return int(self.ttl.total_seconds())

    def issue_access_token(self, session: Session) -> str:
        """
        Sign an access token for a session (HS256).

        The role is informational only; validators re-resolve it from the
        groups claim.
        """
        now = self.clock().replace(tzinfo=UTC)
        payload = {
            "sub": session.subject_id,
            "email": session.email,
            "cognito:groups": list(session.groups or []),
            "sid": session.id,
            "role": session.role.value if session.role else None,
            "custom:mfa_enabled": session.mfa_enrolled,
            "token_use": "access",
            "iss": self.issuer,
            "aud": self.audience,
            "iat": int(now.timestamp()),
            "exp": int((now + self.ttl).timestamp()),
        }
        return jwt.encode(payload, self.secret, algorithm="HS256")
