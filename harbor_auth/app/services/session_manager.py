"""
Session Manager

Creates, refreshes, enumerates and revokes sessions. Owns the concurrent
session limit, the refresh-rotation rules (reuse detection, device
consistency, refresh ceiling) and step-up state.

Every mutating operation commits its own unit of work before any audit event
is written, so audit failures never undo the operation they describe.
"""

import hmac
import logging
from datetime import datetime
from typing import Callable, List, Optional

from pydantic import BaseModel

from harbor_auth.app.services.audit_logger import AuditLogger
from harbor_auth.app.services.security_settings import SecuritySettings
from harbor_auth.app.services.session_notifier import ISessionNotifier
from harbor_auth.app.services.token_issuer import (
    TokenIssuer,
    hash_refresh_secret,
    new_refresh_token,
    split_refresh_token,
)
from harbor_auth.app.services.unit_of_work import UnitOfWork
from harbor_auth.domain.base import utcnow
from harbor_auth.domain.claims import DeviceInfo, EnrichedClaims, RequestContext
from harbor_auth.domain.entities import (
    AuditAction,
    AuditOutcome,
    Role,
    Session,
    SessionLimitStrategy,
    StepUpState,
)
from harbor_auth.domain.errors import AuthErrorCode
from harbor_auth.libs.result import Error, Result, Return

logger = logging.getLogger(__name__)


class IssuedSession(BaseModel):
    """Token pair handed to the client for a session"""

    session_id: str
    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int
    session_expires_at: datetime
    role: Role
    evicted_session_ids: List[str] = []
    audit_recorded: bool = True


class RevocationResult(BaseModel):
    revoked_count: int
    session_ids: List[str] = []
    audit_recorded: bool = True


class SessionManager:
    def __init__(
        self,
        uow: UnitOfWork,
        settings: SecuritySettings,
        issuer: TokenIssuer,
        audit: AuditLogger,
        notifier: Optional[ISessionNotifier] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.uow = uow
        self.settings = settings
        self.issuer = issuer
        self.audit = audit
        self.notifier = notifier
        self.clock = clock

    async def create_session(
        self,
        claims: EnrichedClaims,
        device: DeviceInfo,
        context: Optional[RequestContext] = None,
    ) -> Result[IssuedSession]:
        """
        Open a session for an authenticated subject.

        When the subject already holds the maximum number of live sessions the
        configured strategy applies: reject, evict the least recently active
        sessions, or allow. Enforcement is best-effort under concurrent logins;
        the eviction policy and the expiry sweep correct any overshoot.
        """
        now = self.clock()
        policy = self.settings.session_policy_for(claims.role)
        strategy = self.settings.session_limit_strategy
        evicted: List[Session] = []

        async with self.uow:
            live = await self.uow.sessions.list_live_by_subject(claims.subject_id, now)

            if len(live) >= policy.max_sessions and strategy == SessionLimitStrategy.reject:
                rejected_count = len(live)
                session = None
            else:
                if len(live) >= policy.max_sessions and strategy == SessionLimitStrategy.evict_oldest:
                    overflow = len(live) - policy.max_sessions + 1
                    for candidate in sorted(live, key=lambda s: s.last_activity)[:overflow]:
                        if await self.uow.sessions.revoke_by_id(candidate.id, "evicted", now):
                            evicted.append(candidate)

                session = Session(
                    subject_id=claims.subject_id,
                    email=claims.email,
                    role=claims.role,
                    groups=list(claims.groups),
                    ip_address=device.ip_address,
                    user_agent=device.user_agent,
                    device_fingerprint=device.fingerprint,
                    mfa_enrolled=claims.mfa_enrolled,
                    max_refresh_count=self.settings.max_refresh_count,
                    created_at=now,
                    last_activity=now,
                    expires_at=now + policy.ttl,
                )
                refresh_token, secret_hash = new_refresh_token(session.id)
                session.refresh_token_hash = secret_hash
                await self.uow.sessions.create(session)
                await self.uow.commit()

        if session is None:
            logger.warning(
                f"Session limit reached for {claims.subject_id}: "
                f"{rejected_count}/{policy.max_sessions}"
            )
            await self.audit.record(
                AuditAction.session_limit_rejected,
                AuditOutcome.denied,
                actor_id=claims.subject_id,
                context=context,
                metadata={"live_sessions": rejected_count, "limit": policy.max_sessions},
            )
            return Return.err(
                Error(AuthErrorCode.SESSION_LIMIT, "Maximum number of concurrent sessions reached")
            )

        audit_recorded = True
        for old in evicted:
            logger.info(f"Evicted session {old.id} of {old.subject_id} to admit a new session")
            audit_recorded &= await self.audit.record(
                AuditAction.session_evicted,
                AuditOutcome.success,
                actor_id=claims.subject_id,
                resource=f"session:{old.id}",
                context=context,
                metadata={"replaced_by": session.id},
            )
            if self.notifier is not None:
                await self.notifier.session_evicted(old, "concurrent_session_limit")

        logger.info(f"Created session {session.id} for {claims.subject_id} ({claims.role.value})")
        return Return.ok(
            IssuedSession(
                session_id=session.id,
                access_token=self.issuer.issue_access_token(session),
                refresh_token=refresh_token,
                expires_in=self.issuer.expires_in,
                session_expires_at=session.expires_at,
                role=session.role,
                evicted_session_ids=[old.id for old in evicted],
                audit_recorded=audit_recorded,
            )
        )

    async def refresh(
        self,
        refresh_token: str,
        device_fingerprint: Optional[str] = None,
        context: Optional[RequestContext] = None,
    ) -> Result[IssuedSession]:
        """
        Exchange a refresh token for a new token pair.

        The rotation is a single compare-and-swap on the stored hash, so each
        issued refresh token succeeds at most once. A rotated token presented
        again, a device mismatch or an exhausted refresh budget revokes the
        session and fails with SECURITY_ERROR. A secret that was never issued
        for the session fails with UNAUTHORIZED and leaves it untouched.
        """
        parsed = split_refresh_token(refresh_token)
        if parsed is None:
            return Return.err(Error(AuthErrorCode.UNAUTHORIZED, "Invalid refresh token"))
        session_id, secret = parsed
        presented_hash = hash_refresh_secret(secret)
        now = self.clock()
        violation = None

        async with self.uow:
            session = await self.uow.sessions.get_by_id(session_id)
            if session is None:
                return Return.err(Error(AuthErrorCode.UNAUTHORIZED, "Invalid refresh token"))

            if not hmac.compare_digest(session.refresh_token_hash, presented_hash):
                consumed = session.consumed_refresh_token_hashes or []
                if not any(hmac.compare_digest(h, presented_hash) for h in consumed):
                    logger.info(f"Refresh with an unknown secret for session {session.id}")
                    return Return.err(Error(AuthErrorCode.UNAUTHORIZED, "Invalid refresh token"))
                violation = "refresh_token_reuse"
            elif not session.is_live(now):
                return Return.err(Error(AuthErrorCode.UNAUTHORIZED, "Session is no longer active"))
            elif (
                self.settings.require_device_consistency
                and session.device_fingerprint
                and device_fingerprint != session.device_fingerprint
            ):
                violation = "device_mismatch"
            elif session.refresh_count >= session.max_refresh_count:
                violation = "refresh_limit_exceeded"
            else:
                new_token, new_hash = new_refresh_token(session.id)
                rotated = await self.uow.sessions.rotate_refresh_token(
                    session.id,
                    presented_hash,
                    session.refresh_count,
                    new_hash,
                    now,
                    consumed_hashes=[*(session.consumed_refresh_token_hashes or []), presented_hash],
                )
                if rotated:
                    await self.uow.commit()
                else:
                    # Another request consumed this token first
                    violation = "refresh_token_reuse"

            if violation:
                await self.uow.sessions.revoke_by_id(session.id, violation, now)
                await self.uow.commit()

        if violation:
            logger.warning(f"Refresh rejected for session {session.id}: {violation}")
            await self.audit.record(
                AuditAction.security_violation,
                AuditOutcome.denied,
                actor_id=session.subject_id,
                resource=f"session:{session.id}",
                context=context,
                metadata={"reason": violation, "refresh_count": session.refresh_count},
            )
            return Return.err(
                Error(AuthErrorCode.SECURITY_ERROR, "Session revoked for security reasons")
            )

        audit_recorded = await self.audit.record(
            AuditAction.token_refresh,
            AuditOutcome.success,
            actor_id=session.subject_id,
            resource=f"session:{session.id}",
            context=context,
            metadata={"refresh_count": session.refresh_count},
        )
        return Return.ok(
            IssuedSession(
                session_id=session.id,
                access_token=self.issuer.issue_access_token(session),
                refresh_token=new_token,
                expires_in=self.issuer.expires_in,
                session_expires_at=session.expires_at,
                role=session.role,
                audit_recorded=audit_recorded,
            )
        )

    async def resolve_session(self, claims: EnrichedClaims) -> Result[Session]:
        """The session named by an access token, if it is still live and owned by its subject"""
        if not claims.session_id:
            return Return.err(Error(AuthErrorCode.UNAUTHORIZED, "Token is not bound to a session"))

        async with self.uow:
            session = await self.uow.sessions.get_by_id(claims.session_id)

        if (
            session is None
            or session.subject_id != claims.subject_id
            or not session.is_live(self.clock())
        ):
            return Return.err(Error(AuthErrorCode.UNAUTHORIZED, "Session is no longer active"))
        return Return.ok(session)

    def step_up_state(self, session: Session, role: Role) -> StepUpState:
        return session.step_up_state(self.clock(), self.settings.requires_mfa(role))

    def require_step_up(self, session: Session, role: Role) -> Result[None]:
        state = self.step_up_state(session, role)
        if state == StepUpState.setup_required:
            return Return.err(
                Error(
                    AuthErrorCode.STEP_UP_SETUP_REQUIRED,
                    "Multi-factor authentication must be set up for this role",
                )
            )
        if state == StepUpState.verification_required:
            return Return.err(
                Error(
                    AuthErrorCode.STEP_UP_VERIFICATION_REQUIRED,
                    "Multi-factor verification is required for this action",
                )
            )
        return Return.ok(None)

    async def mark_mfa_verified(
        self, session_id: str, context: Optional[RequestContext] = None
    ) -> Result[Session]:
        now = self.clock()
        async with self.uow:
            session = await self.uow.sessions.get_by_id(session_id)
            if session is None or not session.is_live(now):
                return Return.err(Error(AuthErrorCode.UNAUTHORIZED, "Session is no longer active"))

            session.mfa_enrolled = True
            session.mfa_verified = True
            session.mfa_expires_at = min(now + self.settings.mfa_validity, session.expires_at)
            session.last_activity = now
            await self.uow.sessions.update(session)
            await self.uow.commit()

        await self.audit.record(
            AuditAction.mfa_verify,
            AuditOutcome.success,
            actor_id=session.subject_id,
            resource=f"session:{session.id}",
            context=context,
        )
        return Return.ok(session)

    async def list_sessions(self, subject_id: str) -> Result[List[Session]]:
        async with self.uow:
            sessions = await self.uow.sessions.list_live_by_subject(subject_id, self.clock())
        return Return.ok(sessions)

    async def invalidate(
        self,
        session_id: str,
        context: Optional[RequestContext] = None,
        reason: str = "logout",
        actor_id: Optional[str] = None,
    ) -> Result[RevocationResult]:
        """Idempotent: an unknown or already revoked session yields revoked_count=0"""
        now = self.clock()
        async with self.uow:
            session = await self.uow.sessions.get_by_id(session_id)
            revoked = False
            if session is not None:
                revoked = await self.uow.sessions.revoke_by_id(session_id, reason, now)
                await self.uow.commit()

        if not revoked:
            return Return.ok(RevocationResult(revoked_count=0))

        audit_recorded = await self.audit.record(
            AuditAction.session_revoked,
            AuditOutcome.success,
            actor_id=actor_id or session.subject_id,
            resource=f"session:{session_id}",
            context=context,
            metadata={"reason": reason, "subject_id": session.subject_id},
        )
        return Return.ok(
            RevocationResult(
                revoked_count=1, session_ids=[session_id], audit_recorded=audit_recorded
            )
        )

    async def invalidate_all(
        self,
        subject_id: str,
        context: Optional[RequestContext] = None,
        reason: str = "revoke_all",
        exclude_session_id: Optional[str] = None,
        actor_id: Optional[str] = None,
    ) -> Result[RevocationResult]:
        now = self.clock()
        async with self.uow:
            session_ids = await self.uow.sessions.revoke_all_by_subject(
                subject_id, reason, now, exclude_session_id=exclude_session_id
            )
            await self.uow.commit()

        audit_recorded = True
        for session_id in session_ids:
            audit_recorded &= await self.audit.record(
                AuditAction.session_revoked,
                AuditOutcome.success,
                actor_id=actor_id or subject_id,
                resource=f"session:{session_id}",
                context=context,
                metadata={"reason": reason, "subject_id": subject_id},
            )

        logger.info(f"Revoked {len(session_ids)} sessions of {subject_id} ({reason})")
        return Return.ok(
            RevocationResult(
                revoked_count=len(session_ids),
                session_ids=session_ids,
                audit_recorded=audit_recorded,
            )
        )

    async def sweep_expired(self) -> Result[int]:
        """Delete sessions past their expiry; live sessions never match"""
        async with self.uow:
            deleted = await self.uow.sessions.delete_expired(self.clock())
            await self.uow.commit()
        logger.info(f"Swept {deleted} expired sessions")
        return Return.ok(deleted)
