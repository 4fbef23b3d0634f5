"""
Audit Logger

Builds, scores and persists audit events. Events are written through their own
unit of work so that a failing audit store never rolls back the operation that
produced the event, and a failed write is always surfaced: either as
AuditUnavailableError from log(), or as a CRITICAL fallback record plus a
False return from record().
"""

import asyncio
import hashlib
import json
import logging
from datetime import datetime
from typing import Any, AsyncContextManager, Callable, Dict, Optional

from harbor_auth.app.services.unit_of_work import UnitOfWork
from harbor_auth.domain.base import utcnow
from harbor_auth.domain.claims import RequestContext
from harbor_auth.domain.entities import AuditAction, AuditEvent, AuditOutcome
from harbor_auth.domain.errors import AuditUnavailableError

logger = logging.getLogger(__name__)
fallback_logger = logging.getLogger("harbor_auth.audit.fallback")

REDACTED = "[REDACTED]"
SENSITIVE_KEYS = ("password", "token", "secret", "key", "credential")

ALERT_THRESHOLD = 7.0
MAX_RISK_SCORE = 10.0

ACTION_WEIGHTS: Dict[AuditAction, float] = {
    AuditAction.login: 1.0,
    AuditAction.login_failed: 2.0,
    AuditAction.logout: 0.5,
    AuditAction.token_refresh: 0.5,
    AuditAction.session_revoked: 1.0,
    AuditAction.session_evicted: 2.0,
    AuditAction.session_limit_rejected: 2.0,
    AuditAction.security_violation: 6.0,
    AuditAction.mfa_verify: 1.0,
    AuditAction.account_locked: 4.0,
    AuditAction.rate_limit_exceeded: 4.0,
    AuditAction.sessions_swept: 0.0,
}

OUTCOME_WEIGHTS: Dict[AuditOutcome, float] = {
    AuditOutcome.success: 0.0,
    AuditOutcome.failure: 2.0,
    AuditOutcome.denied: 3.0,
}

OFF_HOURS_WEIGHT = 1.5

RECOMMENDED_ACTIONS: Dict[AuditAction, str] = {
    AuditAction.security_violation: "Invalidate all user sessions and require re-authentication",
    AuditAction.account_locked: "Review account activity and notify the user",
    AuditAction.rate_limit_exceeded: "Implement temporary IP blocking and monitor for abuse",
    AuditAction.login_failed: "Review user account and consider temporary suspension",
}


def mask_email(email: Optional[str]) -> str:
    """Keep the first and last character of the local part: j**n@example.com"""
    if not email:
        return ""
    local, sep, domain = email.partition("@")
    if not sep:
        return email
    if len(local) > 2:
        local = local[0] + "*" * (len(local) - 2) + local[-1]
    return f"{local}@{domain}"


def sanitize_metadata(metadata: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if metadata is None:
        return None

    sanitized = {}
    for key, value in metadata.items():
        lowered = str(key).lower()
        if any(word in lowered for word in SENSITIVE_KEYS):
            sanitized[key] = REDACTED
        elif isinstance(value, dict):
            sanitized[key] = sanitize_metadata(value)
        elif "email" in lowered and isinstance(value, str):
            sanitized[key] = mask_email(value)
        else:
            sanitized[key] = value
    return sanitized


def is_off_hours(at: datetime, start: int, end: int) -> bool:
    if start == end:
        return False
    if start < end:
        return start <= at.hour < end
    # Window wraps midnight
    return at.hour >= start or at.hour < end


def integrity_hash(event: AuditEvent) -> str:
    hash_data = {
        "created_at": event.created_at.isoformat(),
        "action": event.action,
        "actor_id": event.actor_id,
        "resource": event.resource,
        "outcome": event.outcome,
    }
    digest = hashlib.sha256(json.dumps(hash_data, sort_keys=True).encode()).hexdigest()
    return digest[:16]


class AuditLogger:
    def __init__(
        self,
        uow_factory: Callable[[], AsyncContextManager[UnitOfWork]],
        timeout_seconds: float = 5.0,
        off_hours_start: int = 22,
        off_hours_end: int = 6,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.uow_factory = uow_factory
        self.timeout_seconds = timeout_seconds
        self.off_hours_start = off_hours_start
        self.off_hours_end = off_hours_end
        self.clock = clock

    @classmethod
    def from_settings(cls, uow_factory, settings, clock=utcnow) -> "AuditLogger":
        return cls(
            uow_factory,
            timeout_seconds=settings.store_timeout_seconds,
            off_hours_start=settings.off_hours_start,
            off_hours_end=settings.off_hours_end,
            clock=clock,
        )

    def compute_risk_score(
        self, action: AuditAction, outcome: AuditOutcome, at: datetime
    ) -> float:
        """
        Deterministic score in [0, 10] from the action, its outcome and the
        hour it happened. Used for alerting only.
        """
        score = ACTION_WEIGHTS.get(action, 1.0) + OUTCOME_WEIGHTS.get(outcome, 0.0)
        if is_off_hours(at, self.off_hours_start, self.off_hours_end):
            score += OFF_HOURS_WEIGHT
        return min(score, MAX_RISK_SCORE)

    def build_event(
        self,
        action: AuditAction,
        outcome: AuditOutcome,
        actor_id: Optional[str] = None,
        resource: Optional[str] = None,
        context: Optional[RequestContext] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> AuditEvent:
        now = self.clock()
        context = context or RequestContext()

        event_metadata = sanitize_metadata(metadata) or {}
        if context.request_id:
            event_metadata.setdefault("request_id", context.request_id)

        event = AuditEvent(
            actor_id=actor_id,
            action=action.value,
            resource=resource,
            outcome=outcome.value,
            ip_address=context.ip_address,
            user_agent=context.user_agent,
            risk_score=self.compute_risk_score(action, outcome, now),
            event_metadata=event_metadata,
            created_at=now,
        )
        event.integrity_hash = integrity_hash(event)
        return event

    async def log(self, event: AuditEvent) -> AuditEvent:
        """
        Persist an event within the store timeout.

        Raises:
            AuditUnavailableError: the store failed or did not answer in time
        """
        try:
            await asyncio.wait_for(self._persist(event), timeout=self.timeout_seconds)
        except Exception as exc:
            # Includes asyncio.TimeoutError from the store deadline
            raise AuditUnavailableError(event, exc) from exc

        if event.risk_score >= ALERT_THRESHOLD:
            self._security_alert(event)
        return event

    async def record(
        self,
        action: AuditAction,
        outcome: AuditOutcome,
        actor_id: Optional[str] = None,
        resource: Optional[str] = None,
        context: Optional[RequestContext] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """
        Build and log an event for an operation that has already committed.

        Returns False when the event only reached the fallback channel.
        """
        event = self.build_event(action, outcome, actor_id, resource, context, metadata)
        try:
            await self.log(event)
        except AuditUnavailableError as exc:
            self._fallback(exc)
            return False
        return True

    async def _persist(self, event: AuditEvent) -> None:
        async with self.uow_factory() as uow:
            await uow.audit_events.create(event)
            await uow.commit()

    def _fallback(self, exc: AuditUnavailableError) -> None:
        payload = exc.event.model_dump(mode="json")
        logger.error(f"Audit store unavailable, event written to fallback channel: {exc.cause!r}")
        fallback_logger.critical(json.dumps(payload, sort_keys=True, default=str))
        if exc.event.risk_score >= ALERT_THRESHOLD:
            self._security_alert(exc.event)

    def _security_alert(self, event: AuditEvent) -> None:
        action = AuditAction(event.action)
        recommended = RECOMMENDED_ACTIONS.get(action, "Review and investigate security event")
        logger.warning(
            f"Security alert: {event.action} ({event.outcome}) actor={event.actor_id} "
            f"ip={event.ip_address} risk={event.risk_score:.1f}. "
            f"Recommended action: {recommended}"
        )
