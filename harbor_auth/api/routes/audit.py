"""
Audit API Routes

Handles audit event retrieval endpoints.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel

from harbor_auth.api.error import raise_for_error
from harbor_auth.app.services.session_manager import SessionManager
from harbor_auth.app.services.timeouts import bounded
from harbor_auth.app.services.unit_of_work import UnitOfWork
from harbor_auth.app.use_cases.audit import GetAuditEventsUseCase
from harbor_auth.domain.claims import EnrichedClaims
from harbor_auth.domain.entities import Session
from harbor_auth.depends import (
    get_current_claims,
    get_current_session,
    get_operation_timeout,
    get_session_manager,
    get_unit_of_work,
)

router = APIRouter(prefix="/audit", tags=["Audit"])


class AuditEventResponse(BaseModel):
    """Single audit event in response"""

    id: str
    action: str
    outcome: str
    actor_id: Optional[str]
    resource: Optional[str]
    ip_address: Optional[str]
    risk_score: float
    integrity_hash: str
    timestamp: str
    metadata: Dict[str, Any]


class AuditEventsResponse(BaseModel):
    """GET /audit/events response payload"""

    events: List[AuditEventResponse]
    next_cursor: Optional[str]


@router.get(
    "/events",
    status_code=status.HTTP_200_OK,
    response_model=AuditEventsResponse,
)
async def get_audit_events(
    claims: EnrichedClaims = Depends(get_current_claims),
    session: Session = Depends(get_current_session),
    uow: UnitOfWork = Depends(get_unit_of_work),
    session_manager: SessionManager = Depends(get_session_manager),
    timeout: float = Depends(get_operation_timeout),
    actor_id: Optional[str] = Query(None, description="Only events of this actor"),
    limit: int = Query(50, ge=1, le=100, description="Maximum number of events to return"),
    cursor: Optional[str] = Query(None, description="Pagination cursor"),
):
    """
    Get Audit Events

    Query Parameters:
        - actor_id: Narrow to one actor
        - limit: Maximum number of events to return (1-100, default 50)
        - cursor: Pagination cursor for fetching next page

    Returns:
        - events: List of audit events ordered by newest first
        - next_cursor: Cursor for next page (null if no more events)

    Raises:
        - 401 Unauthorized: Invalid or expired token, inactive session
        - 403 Forbidden: Missing audit_log_view permission or step-up required
    """
    use_case = GetAuditEventsUseCase(uow, session_manager)
    result = await bounded(
        use_case.execute(claims, session, actor_id=actor_id, limit=limit, cursor=cursor),
        timeout,
        "audit query",
    )

    if result.is_err():
        raise_for_error(result.error)

    return result.value
