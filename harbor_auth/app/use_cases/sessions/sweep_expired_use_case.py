"""
Sweep Expired Use Case

Housekeeping: removes expired sessions and prunes expired login attempts.
"""

import logging

from harbor_auth.app.services.audit_logger import AuditLogger
from harbor_auth.app.services.login_attempt_tracker import LoginAttemptTracker
from harbor_auth.app.services.session_manager import SessionManager
from harbor_auth.domain.claims import RequestContext
from harbor_auth.domain.entities import AuditAction, AuditOutcome
from harbor_auth.libs.result import Result, Return
from .dtos import SweepResponse

logger = logging.getLogger(__name__)


class SweepExpiredUseCase:
    def __init__(
        self,
        session_manager: SessionManager,
        tracker: LoginAttemptTracker,
        audit: AuditLogger,
    ):
        self.session_manager = session_manager
        self.tracker = tracker
        self.audit = audit

    async def execute(self, context: RequestContext) -> Result[SweepResponse]:
        sweep_result = await self.session_manager.sweep_expired()
        if sweep_result.is_err():
            return Return.err(sweep_result.error)

        pruned = await self.tracker.prune_expired()

        audit_recorded = await self.audit.record(
            AuditAction.sessions_swept,
            AuditOutcome.success,
            actor_id="system",
            context=context,
            metadata={"sessions_deleted": sweep_result.value, "login_attempts_deleted": pruned},
        )
        return Return.ok(
            SweepResponse(
                sessions_deleted=sweep_result.value,
                login_attempts_deleted=pruned,
                audit_recorded=audit_recorded,
            )
        )
