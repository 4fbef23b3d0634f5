"""
Step-Up Use Case

Verifies a second factor with the identity provider and marks the current
session as step-up verified for a limited time.
"""

from harbor_auth.app.services.audit_logger import AuditLogger
from harbor_auth.app.services.identity_provider import IIdentityProvider
from harbor_auth.app.services.session_manager import SessionManager
from harbor_auth.domain.claims import RequestContext
from harbor_auth.domain.entities import AuditAction, AuditOutcome, Session
from harbor_auth.domain.errors import AuthErrorCode
from harbor_auth.libs.result import Error, Result, Return
from .dtos import StepUpResponse


class StepUpUseCase:
    def __init__(
        self,
        identity_provider: IIdentityProvider,
        session_manager: SessionManager,
        audit: AuditLogger,
    ):
        self.identity_provider = identity_provider
        self.session_manager = session_manager
        self.audit = audit

    async def execute(
        self, session: Session, code: str, context: RequestContext
    ) -> Result[StepUpResponse]:
        verify_result = await self.identity_provider.verify_mfa(session.subject_id, code)
        if verify_result.is_err():
            return Return.err(verify_result.error)

        if not verify_result.value:
            await self.audit.record(
                AuditAction.mfa_verify,
                AuditOutcome.failure,
                actor_id=session.subject_id,
                resource=f"session:{session.id}",
                context=context,
            )
            return Return.err(Error(AuthErrorCode.INVALID_MFA_CODE, "Invalid verification code"))

        mark_result = await self.session_manager.mark_mfa_verified(session.id, context)
        if mark_result.is_err():
            return Return.err(mark_result.error)

        verified = mark_result.value
        return Return.ok(
            StepUpResponse(
                session_id=verified.id,
                mfa_verified=verified.mfa_verified,
                mfa_expires_at=verified.mfa_expires_at,
            )
        )
