"""
Security Settings

Every security knob of the auth core, consolidated into one immutable object
built from ApplicationConfig. The hardened/relaxed token verification split
lives here as a tagged variant and nowhere else.
"""

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import FrozenSet, Optional, Union

from harbor_auth.domain.entities import Role, SessionLimitStrategy
from harbor_auth.app.services.role_resolver import is_staff

logger = logging.getLogger(__name__)

STRICT_ENVIRONMENTS = ("staging", "prod")


@dataclass(frozen=True)
class StrictVerification:
    """Signature, issuer and audience all verified (staging, prod)"""

    issuer: str
    audience: str


@dataclass(frozen=True)
class RelaxedVerification:
    """Audience verification skipped (local, dev); issuer checked if set"""

    issuer: Optional[str] = None


VerificationPolicy = Union[StrictVerification, RelaxedVerification]


def normalize_environment(value: str) -> str:
    normalized = (value or "").strip().lower()
    if normalized in ("local", "development", "dev"):
        return "local"
    if normalized == "develop":
        return "dev"
    if normalized in ("staging", "stage"):
        return "staging"
    if normalized in ("prod", "production"):
        return "prod"
    logger.warning(f"Unknown environment '{value}', defaulting to 'local'")
    return "local"


def verification_policy_for(environment: str, issuer: str, audience: str) -> VerificationPolicy:
    if normalize_environment(environment) in STRICT_ENVIRONMENTS:
        return StrictVerification(issuer=issuer, audience=audience)
    return RelaxedVerification(issuer=issuer or None)


@dataclass(frozen=True)
class SessionPolicy:
    max_sessions: int
    ttl: timedelta


@dataclass(frozen=True)
class SecuritySettings:
    environment: str = "local"
    session_verification: VerificationPolicy = field(default_factory=RelaxedVerification)
    identity_verification: VerificationPolicy = field(default_factory=RelaxedVerification)

    lockout_threshold: int = 5
    lockout_window: timedelta = timedelta(minutes=15)
    origin_rate_limit_threshold: int = 20
    origin_rate_limit_window: timedelta = timedelta(minutes=15)
    login_attempt_retention: timedelta = timedelta(hours=24)
    login_success_resets_lockout: bool = True

    session_limit_strategy: SessionLimitStrategy = SessionLimitStrategy.evict_oldest
    customer_sessions: SessionPolicy = SessionPolicy(max_sessions=5, ttl=timedelta(hours=24))
    staff_sessions: SessionPolicy = SessionPolicy(max_sessions=2, ttl=timedelta(hours=8))
    max_refresh_count: int = 50
    require_device_consistency: bool = True

    mfa_required_roles: FrozenSet[Role] = frozenset({Role.manager, Role.admin, Role.super_admin})
    mfa_validity: timedelta = timedelta(minutes=60)

    store_timeout_seconds: float = 5.0
    off_hours_start: int = 22
    off_hours_end: int = 6

    @property
    def is_strict(self) -> bool:
        return isinstance(self.session_verification, StrictVerification)

    def session_policy_for(self, role: Role) -> SessionPolicy:
        return self.staff_sessions if is_staff(role) else self.customer_sessions

    def requires_mfa(self, role: Role) -> bool:
        return role in self.mfa_required_roles

    @classmethod
    def from_config(cls, config) -> "SecuritySettings":
        environment = normalize_environment(config.ENVIRONMENT)
        return cls(
            environment=environment,
            session_verification=verification_policy_for(
                environment, config.JWT_ISSUER, config.JWT_AUDIENCE
            ),
            identity_verification=verification_policy_for(
                environment, config.IDP_ISSUER, config.IDP_CLIENT_ID
            ),
            lockout_threshold=int(config.LOCKOUT_THRESHOLD),
            lockout_window=timedelta(minutes=config.LOCKOUT_WINDOW_MINUTES),
            origin_rate_limit_threshold=int(config.ORIGIN_RATE_LIMIT_THRESHOLD),
            origin_rate_limit_window=timedelta(minutes=config.ORIGIN_RATE_LIMIT_WINDOW_MINUTES),
            login_attempt_retention=timedelta(hours=config.LOGIN_ATTEMPT_RETENTION_HOURS),
            login_success_resets_lockout=bool(config.LOGIN_SUCCESS_RESETS_LOCKOUT),
            session_limit_strategy=SessionLimitStrategy(config.SESSION_LIMIT_STRATEGY),
            customer_sessions=SessionPolicy(
                max_sessions=int(config.CUSTOMER_MAX_SESSIONS),
                ttl=timedelta(hours=config.CUSTOMER_SESSION_TTL_HOURS),
            ),
            staff_sessions=SessionPolicy(
                max_sessions=int(config.STAFF_MAX_SESSIONS),
                ttl=timedelta(hours=config.STAFF_SESSION_TTL_HOURS),
            ),
            max_refresh_count=int(config.MAX_REFRESH_COUNT),
            require_device_consistency=bool(config.REQUIRE_DEVICE_CONSISTENCY),
            mfa_required_roles=frozenset(Role(r) for r in config.MFA_REQUIRED_ROLES),
            mfa_validity=timedelta(minutes=config.MFA_VALIDITY_MINUTES),
            store_timeout_seconds=float(config.STORE_TIMEOUT_SECONDS),
            off_hours_start=int(config.OFF_HOURS_START),
            off_hours_end=int(config.OFF_HOURS_END),
        )
