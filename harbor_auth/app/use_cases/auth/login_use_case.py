"""
Login Use Case

Authenticates credentials with the identity provider and opens a session.
"""

import logging

from harbor_auth.app.services.audit_logger import AuditLogger
from harbor_auth.app.services.identity_provider import IIdentityProvider
from harbor_auth.app.services.login_attempt_tracker import (
    LoginAttemptTracker,
    normalize_account_id,
)
from harbor_auth.app.services.session_manager import SessionManager
from harbor_auth.app.services.token_validator import TokenValidator
from harbor_auth.domain.claims import DeviceInfo, RequestContext
from harbor_auth.domain.entities import AuditAction, AuditOutcome, StepUpState
from harbor_auth.domain.errors import AuthErrorCode
from harbor_auth.libs.result import Error, Result, Return
from .dtos import LoginResponse

logger = logging.getLogger(__name__)


class LoginUseCase:
    """
    Use case for login and session issuance.

    Business Rules:
    - Origin rate limit is checked first, then account lockout
    - Only rejected credentials count as failed attempts; provider outages do not
    - The provider's ID token is validated like any other token before use
    - Role and permissions come from the token's groups, never from the request
    - Session creation applies the concurrent session limit for the role
    """

    def __init__(
        self,
        tracker: LoginAttemptTracker,
        identity_provider: IIdentityProvider,
        identity_validator: TokenValidator,
        session_manager: SessionManager,
        audit: AuditLogger,
    ):
        self.tracker = tracker
        self.identity_provider = identity_provider
        self.identity_validator = identity_validator
        self.session_manager = session_manager
        self.audit = audit

    async def execute(
        self,
        email: str,
        password: str,
        device: DeviceInfo,
        context: RequestContext,
    ) -> Result[LoginResponse]:
        """
        Execute login use case.

        Args:
            email: Account e-mail
            password: Plain text password (forwarded to the identity provider only)
            device: Client descriptor recorded on the new session
            context: Per-request origin data

        Returns:
            Result with LoginResponse, or Error
        """
        account_id = normalize_account_id(email)

        if await self.tracker.is_rate_limited(context.ip_address):
            await self.audit.record(
                AuditAction.rate_limit_exceeded,
                AuditOutcome.denied,
                context=context,
                metadata={"email": account_id},
            )
            return Return.err(
                Error(AuthErrorCode.RATE_LIMITED, "Too many failed attempts from this address")
            )

        if await self.tracker.is_locked_out(account_id):
            await self.audit.record(
                AuditAction.account_locked,
                AuditOutcome.denied,
                context=context,
                metadata={"email": account_id},
            )
            return Return.err(
                Error(AuthErrorCode.LOCKED_OUT, "Account temporarily locked after failed attempts")
            )

        auth_result = await self.identity_provider.authenticate(email, password)
        if auth_result.is_err():
            error = auth_result.error
            if error.code == AuthErrorCode.INVALID_CREDENTIALS:
                await self.tracker.record_attempt(
                    account_id,
                    context.ip_address,
                    success=False,
                    failure_reason="invalid_credentials",
                    user_agent=context.user_agent,
                )
                await self.audit.record(
                    AuditAction.login_failed,
                    AuditOutcome.failure,
                    context=context,
                    metadata={"email": account_id, "reason": "invalid_credentials"},
                )
            else:
                logger.error(f"Identity provider failed during login: {error.code}")
            return Return.err(error)

        claims_result = await self.identity_validator.validate(auth_result.value.id_token)
        if claims_result.is_err():
            logger.error(
                f"Identity provider issued an unusable token: {claims_result.error.code}"
            )
            return Return.err(claims_result.error)
        claims = claims_result.value

        await self.tracker.record_attempt(
            account_id, context.ip_address, success=True, user_agent=context.user_agent
        )

        session_result = await self.session_manager.create_session(claims, device, context)
        if session_result.is_err():
            return Return.err(session_result.error)
        issued = session_result.value

        audit_recorded = await self.audit.record(
            AuditAction.login,
            AuditOutcome.success,
            actor_id=claims.subject_id,
            resource=f"session:{issued.session_id}",
            context=context,
            metadata={"email": claims.email, "role": claims.role.value},
        )

        # A fresh session has not passed step-up yet
        if not self.session_manager.settings.requires_mfa(claims.role):
            step_up_state = StepUpState.not_required
        elif claims.mfa_enrolled:
            step_up_state = StepUpState.verification_required
        else:
            step_up_state = StepUpState.setup_required

        return Return.ok(
            LoginResponse(
                access_token=issued.access_token,
                refresh_token=issued.refresh_token,
                session_id=issued.session_id,
                token_type=issued.token_type,
                expires_in=issued.expires_in,
                session_expires_at=issued.session_expires_at,
                role=claims.role.value,
                permissions=sorted(p.value for p in claims.permissions),
                step_up=step_up_state.value,
                evicted_session_ids=issued.evicted_session_ids,
                audit_recorded=audit_recorded and issued.audit_recorded,
            )
        )
