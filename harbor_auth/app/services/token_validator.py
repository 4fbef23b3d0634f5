"""
Token Validator

Verifies a presented JWT against the configured verification policy and
returns the enriched identity (subject, role, permissions, session id).
"""

import logging
from datetime import UTC, datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from jose import JWTError, jwt

from harbor_auth.domain.base import utcnow
from harbor_auth.domain.claims import EnrichedClaims
from harbor_auth.domain.errors import AuthErrorCode
from harbor_auth.libs.result import Error, Result, Return
from harbor_auth.app.services.key_provider import ISigningKeyProvider, KeyProviderError
from harbor_auth.app.services.role_resolver import permissions_for, resolve_role
from harbor_auth.app.services.security_settings import (
    RelaxedVerification,
    StrictVerification,
    VerificationPolicy,
)

logger = logging.getLogger(__name__)

# Expiry, issuer and audience are checked here, against the injected clock
_DECODE_OPTIONS = {
    "verify_signature": True,
    "verify_aud": False,
    "verify_iss": False,
    "verify_exp": False,
    "verify_nbf": False,
    "verify_iat": False,
    "verify_at_hash": False,
}


def _to_datetime(timestamp: Any) -> Optional[datetime]:
    if not isinstance(timestamp, (int, float)) or isinstance(timestamp, bool):
        return None
    return datetime.fromtimestamp(timestamp, UTC).replace(tzinfo=None)


def _audiences(claims: Dict[str, Any]) -> List[str]:
    aud = claims.get("aud")
    if isinstance(aud, str):
        return [aud]
    if isinstance(aud, list):
        return [a for a in aud if isinstance(a, str)]
    # Provider access tokens carry client_id instead of aud
    client_id = claims.get("client_id")
    return [client_id] if isinstance(client_id, str) else []


def _groups(claims: Dict[str, Any]) -> Iterable[str]:
    groups = claims.get("cognito:groups", claims.get("groups"))
    if groups is None:
        return ()
    if isinstance(groups, str):
        return (groups,)
    return tuple(g for g in groups if isinstance(g, str))


def _flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return bool(value)


class TokenValidator:
    """
    Validates tokens for one issuer.

    Order of checks:
    1. Structure (header/payload decode, integer exp) -> MALFORMED_TOKEN
    2. Expiry, before anything else -> EXPIRED
    3. Signature against the provider's key -> INVALID_SIGNATURE
    4. Issuer/audience per policy -> INVALID_AUDIENCE
    5. Subject and group claims -> EnrichedClaims via the role resolver
    """

    def __init__(
        self,
        policy: VerificationPolicy,
        key_provider: ISigningKeyProvider,
        algorithms: Sequence[str] = ("HS256",),
        clock: Callable[[], datetime] = utcnow,
    ):
        self.policy = policy
        self.key_provider = key_provider
        self.algorithms = list(algorithms)
        self.clock = clock

    async def validate(self, token: str) -> Result[EnrichedClaims]:
        if not isinstance(token, str) or token.count(".") != 2:
            return Return.err(Error(AuthErrorCode.MALFORMED_TOKEN, "Token is not a JWT"))

        try:
            header = jwt.get_unverified_header(token)
            unverified = jwt.get_unverified_claims(token)
        except JWTError:
            return Return.err(Error(AuthErrorCode.MALFORMED_TOKEN, "Token could not be decoded"))

        if not isinstance(unverified, dict):
            return Return.err(Error(AuthErrorCode.MALFORMED_TOKEN, "Token payload is not an object"))

        expires_at = _to_datetime(unverified.get("exp"))
        if expires_at is None:
            return Return.err(Error(AuthErrorCode.MALFORMED_TOKEN, "Token has no expiry"))

        if expires_at <= self.clock():
            return Return.err(Error(AuthErrorCode.EXPIRED, "Token has expired"))

        if header.get("alg") not in self.algorithms:
            return Return.err(
                Error(AuthErrorCode.INVALID_SIGNATURE, "Token algorithm is not accepted")
            )

        try:
            key = await self.key_provider.get_key(header)
        except KeyProviderError as e:
            logger.error(f"Signing keys unavailable: {e}")
            return Return.err(
                Error(
                    AuthErrorCode.IDENTITY_PROVIDER_UNAVAILABLE,
                    "Signing keys are unavailable",
                )
            )

        if key is None:
            return Return.err(Error(AuthErrorCode.INVALID_SIGNATURE, "Unknown signing key"))

        try:
            claims = jwt.decode(token, key, algorithms=self.algorithms, options=_DECODE_OPTIONS)
        except JWTError:
            return Return.err(
                Error(AuthErrorCode.INVALID_SIGNATURE, "Signature verification failed")
            )

        policy_result = self._check_policy(claims)
        if policy_result.is_err():
            return policy_result

        subject_id = claims.get("sub")
        if not isinstance(subject_id, str) or not subject_id:
            return Return.err(Error(AuthErrorCode.MALFORMED_TOKEN, "Token has no subject"))

        groups = _groups(claims)
        role = resolve_role(groups)

        return Return.ok(
            EnrichedClaims(
                subject_id=subject_id,
                email=claims.get("email"),
                groups=tuple(groups),
                role=role,
                permissions=permissions_for(role),
                session_id=claims.get("sid"),
                mfa_enrolled=_flag(claims.get("custom:mfa_enabled", False)),
                issued_at=_to_datetime(claims.get("iat")),
                expires_at=expires_at,
            )
        )

    def _check_policy(self, claims: Dict[str, Any]) -> Result[None]:
        policy = self.policy

        if isinstance(policy, StrictVerification):
            if claims.get("iss") != policy.issuer:
                return Return.err(Error(AuthErrorCode.INVALID_AUDIENCE, "Token issuer mismatch"))
            if policy.audience not in _audiences(claims):
                return Return.err(
                    Error(AuthErrorCode.INVALID_AUDIENCE, "Token audience mismatch")
                )
            return Return.ok(None)

        if isinstance(policy, RelaxedVerification):
            if policy.issuer and claims.get("iss") != policy.issuer:
                return Return.err(Error(AuthErrorCode.INVALID_AUDIENCE, "Token issuer mismatch"))
            return Return.ok(None)

        # Unknown policy variants never pass
        return Return.err(Error(AuthErrorCode.INVALID_AUDIENCE, "No verification policy"))
