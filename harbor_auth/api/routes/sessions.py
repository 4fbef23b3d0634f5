from typing import Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from harbor_auth.api.error import raise_for_error
from harbor_auth.app.services.session_manager import SessionManager
from harbor_auth.app.services.timeouts import bounded
from harbor_auth.app.services.unit_of_work import UnitOfWork
from harbor_auth.app.use_cases.sessions import (
    RevokeSessionsResponse,
    RevokeSessionsUseCase,
    SessionInfo,
    SessionListResponse,
)
from harbor_auth.domain.claims import EnrichedClaims, RequestContext
from harbor_auth.domain.entities import Session
from harbor_auth.depends import (
    get_current_claims,
    get_current_session,
    get_operation_timeout,
    get_request_context,
    get_session_manager,
    get_unit_of_work,
)

router = APIRouter(prefix="/sessions", tags=["Sessions"])


@router.get("", status_code=status.HTTP_200_OK, response_model=SessionListResponse)
async def list_sessions(
    claims: EnrichedClaims = Depends(get_current_claims),
    session: Session = Depends(get_current_session),
    session_manager: SessionManager = Depends(get_session_manager),
    timeout: float = Depends(get_operation_timeout),
):
    """
    List Sessions

    Live sessions of the caller, most recently active first.
    """
    result = await bounded(
        session_manager.list_sessions(claims.subject_id), timeout, "list sessions"
    )

    if result.is_err():
        raise_for_error(result.error)

    return SessionListResponse(
        sessions=[SessionInfo.from_session(s, session.id) for s in result.value]
    )


class RevokeAllSessionsRequest(BaseModel):
    """Request to revoke all sessions of a subject"""

    subject_id: Optional[str] = Field(
        None, description="Subject whose sessions will be revoked (defaults to the caller)"
    )


@router.post(
    "/revoke-all",
    status_code=status.HTTP_200_OK,
    response_model=RevokeSessionsResponse,
)
async def revoke_all_sessions(
    request: RevokeAllSessionsRequest,
    claims: EnrichedClaims = Depends(get_current_claims),
    session: Session = Depends(get_current_session),
    context: RequestContext = Depends(get_request_context),
    uow: UnitOfWork = Depends(get_unit_of_work),
    session_manager: SessionManager = Depends(get_session_manager),
    timeout: float = Depends(get_operation_timeout),
):
    """
    Revoke All Sessions

    Revokes every session of a subject. Useful for:
    - Security incidents (account compromise)
    - Credential changes
    - Manager-initiated logout

    Authorization:
    - Subjects can revoke their own sessions
    - user_management holders can revoke anyone's, after step-up

    Raises:
        - 403 Forbidden: Missing permission or step-up required
    """
    use_case = RevokeSessionsUseCase(uow, session_manager)
    result = await bounded(
        use_case.revoke_all_sessions(claims, session, context, request.subject_id),
        timeout,
        "revoke all sessions",
    )

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.post(
    "/revoke-others",
    status_code=status.HTTP_200_OK,
    response_model=RevokeSessionsResponse,
)
async def revoke_other_sessions(
    claims: EnrichedClaims = Depends(get_current_claims),
    session: Session = Depends(get_current_session),
    context: RequestContext = Depends(get_request_context),
    uow: UnitOfWork = Depends(get_unit_of_work),
    session_manager: SessionManager = Depends(get_session_manager),
    timeout: float = Depends(get_operation_timeout),
):
    """
    Revoke All Other Sessions

    Logout other devices; the session of the presented access token stays.
    """
    use_case = RevokeSessionsUseCase(uow, session_manager)
    result = await bounded(
        use_case.revoke_other_sessions(claims, session, context),
        timeout,
        "revoke other sessions",
    )

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.delete(
    "/{session_id}",
    status_code=status.HTTP_200_OK,
    response_model=RevokeSessionsResponse,
)
async def revoke_session(
    session_id: str,
    claims: EnrichedClaims = Depends(get_current_claims),
    session: Session = Depends(get_current_session),
    context: RequestContext = Depends(get_request_context),
    uow: UnitOfWork = Depends(get_unit_of_work),
    session_manager: SessionManager = Depends(get_session_manager),
    timeout: float = Depends(get_operation_timeout),
):
    """
    Revoke Specific Session

    Raises:
        - 403 Forbidden: Session belongs to someone else and caller lacks permission
        - 404 Not Found: Session not found
    """
    use_case = RevokeSessionsUseCase(uow, session_manager)
    result = await bounded(
        use_case.revoke_session(session_id, claims, session, context),
        timeout,
        "revoke session",
    )

    if result.is_err():
        raise_for_error(result.error)

    return result.value
