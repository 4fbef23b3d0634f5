"""
Get Audit Events Use Case

Retrieves security audit events with pagination.
"""

from typing import Any, Dict, Optional

from harbor_auth.app.services.session_manager import SessionManager
from harbor_auth.app.services.unit_of_work import UnitOfWork
from harbor_auth.domain.claims import EnrichedClaims
from harbor_auth.domain.entities import Permission, Session
from harbor_auth.domain.errors import AuthErrorCode
from harbor_auth.libs.result import Error, Result, Return


class GetAuditEventsUseCase:
    """
    Use case for retrieving audit events.

    Business Rules:
    - Caller must hold the audit_log_view permission
    - Caller's session must have passed step-up when the role requires it
    - Results can be narrowed to one actor
    - Results ordered by newest first
    - Supports cursor-based pagination
    """

    def __init__(self, uow: UnitOfWork, session_manager: SessionManager):
        self.uow = uow
        self.session_manager = session_manager

    async def execute(
        self,
        claims: EnrichedClaims,
        current_session: Session,
        actor_id: Optional[str] = None,
        limit: int = 50,
        cursor: Optional[str] = None,
    ) -> Result[Dict[str, Any]]:
        """
        Execute get audit events use case.

        Args:
            claims: Validated identity of the caller
            current_session: Session the caller's access token is bound to
            actor_id: Only return events of this actor (optional)
            limit: Maximum number of events to return
            cursor: Pagination cursor (optional)

        Returns:
            Result with events list and next_cursor, or Error
        """
        if not claims.has_permission(Permission.audit_log_view):
            return Return.err(
                Error(AuthErrorCode.FORBIDDEN, "You do not have permission to view audit events")
            )

        step_up = self.session_manager.require_step_up(current_session, claims.role)
        if step_up.is_err():
            return Return.err(step_up.error)

        async with self.uow:
            events, next_cursor = await self.uow.audit_events.get_by_actor_paginated(
                actor_id, limit=limit, cursor=cursor
            )

        events_list = [
            {
                "id": str(event.id),
                "action": event.action,
                "outcome": event.outcome,
                "actor_id": event.actor_id,
                "resource": event.resource,
                "ip_address": event.ip_address,
                "risk_score": event.risk_score,
                "integrity_hash": event.integrity_hash,
                "timestamp": event.created_at.isoformat() + "Z",
                "metadata": event.event_metadata or {},
            }
            for event in events
        ]
        return Return.ok({"events": events_list, "next_cursor": next_cursor})
