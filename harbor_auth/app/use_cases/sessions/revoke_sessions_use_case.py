"""
Revoke Sessions Use Case

Handles session revocation for logout, device management and incident response.
"""

from typing import Optional

from harbor_auth.app.services.session_manager import SessionManager
from harbor_auth.app.services.unit_of_work import UnitOfWork
from harbor_auth.domain.claims import EnrichedClaims, RequestContext
from harbor_auth.domain.entities import Permission, Session
from harbor_auth.domain.errors import AuthErrorCode
from harbor_auth.libs.result import Error, Result, Return
from .dtos import RevokeSessionsResponse


class RevokeSessionsUseCase:
    """
    Use case for revoking sessions.

    Business Rules:
    - Subjects can revoke their own sessions
    - Holders of user_management can revoke anyone's sessions, after step-up
    - Revocation is idempotent and audit-logged per revoked session
    - Three revocation modes: specific, all, all-except-current
    """

    def __init__(self, uow: UnitOfWork, session_manager: SessionManager):
        self.uow = uow
        self.session_manager = session_manager

    def _authorize(
        self, target_subject_id: str, claims: EnrichedClaims, current_session: Session
    ) -> Result[None]:
        if target_subject_id == claims.subject_id:
            return Return.ok(None)
        if not claims.has_permission(Permission.user_management):
            return Return.err(
                Error(AuthErrorCode.FORBIDDEN, "Only user managers can revoke other users' sessions")
            )
        return self.session_manager.require_step_up(current_session, claims.role)

    async def revoke_session(
        self,
        session_id: str,
        claims: EnrichedClaims,
        current_session: Session,
        context: RequestContext,
    ) -> Result[RevokeSessionsResponse]:
        """
        Revoke a specific session by ID.

        Returns:
            Result with revocation summary, or Error
        """
        async with self.uow:
            target = await self.uow.sessions.get_by_id(session_id)
        if target is None:
            return Return.err(Error(AuthErrorCode.SESSION_NOT_FOUND, "Session not found"))

        authorized = self._authorize(target.subject_id, claims, current_session)
        if authorized.is_err():
            return Return.err(authorized.error)

        result = await self.session_manager.invalidate(
            session_id, context, reason="revoked", actor_id=claims.subject_id
        )
        revocation = result.value
        message = "Session revoked successfully" if revocation.revoked_count else "Session already inactive"
        return Return.ok(
            RevokeSessionsResponse(
                message=message,
                revoked_count=revocation.revoked_count,
                session_ids=revocation.session_ids,
                audit_recorded=revocation.audit_recorded,
            )
        )

    async def revoke_all_sessions(
        self,
        claims: EnrichedClaims,
        current_session: Session,
        context: RequestContext,
        target_subject_id: Optional[str] = None,
    ) -> Result[RevokeSessionsResponse]:
        """Revoke every session of a subject (the caller when no target is given)"""
        target_subject_id = target_subject_id or claims.subject_id

        authorized = self._authorize(target_subject_id, claims, current_session)
        if authorized.is_err():
            return Return.err(authorized.error)

        result = await self.session_manager.invalidate_all(
            target_subject_id, context, reason="revoke_all", actor_id=claims.subject_id
        )
        revocation = result.value
        return Return.ok(
            RevokeSessionsResponse(
                message=f"Successfully revoked {revocation.revoked_count} session(s)",
                revoked_count=revocation.revoked_count,
                session_ids=revocation.session_ids,
                audit_recorded=revocation.audit_recorded,
            )
        )

    async def revoke_other_sessions(
        self,
        claims: EnrichedClaims,
        current_session: Session,
        context: RequestContext,
    ) -> Result[RevokeSessionsResponse]:
        """Logout other devices: every session of the caller except the current one"""
        result = await self.session_manager.invalidate_all(
            claims.subject_id,
            context,
            reason="revoke_others",
            exclude_session_id=current_session.id,
            actor_id=claims.subject_id,
        )
        revocation = result.value
        return Return.ok(
            RevokeSessionsResponse(
                message=f"Successfully revoked {revocation.revoked_count} other session(s)",
                revoked_count=revocation.revoked_count,
                session_ids=revocation.session_ids,
                audit_recorded=revocation.audit_recorded,
            )
        )
