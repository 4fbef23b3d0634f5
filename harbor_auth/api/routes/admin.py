"""
Admin API Routes - Maintenance Endpoints

These endpoints are for schedulers and internal services.
Authentication is via Admin API Key, not user tokens.
"""

from fastapi import APIRouter, Depends, status

from harbor_auth.api.error import raise_for_error
from harbor_auth.api.utils.admin_auth import verify_admin_api_key
from harbor_auth.app.services.audit_logger import AuditLogger
from harbor_auth.app.services.login_attempt_tracker import LoginAttemptTracker
from harbor_auth.app.services.session_manager import SessionManager
from harbor_auth.app.services.timeouts import bounded
from harbor_auth.app.use_cases.sessions import SweepExpiredUseCase, SweepResponse
from harbor_auth.domain.claims import RequestContext
from harbor_auth.depends import (
    get_audit_logger,
    get_login_attempt_tracker,
    get_operation_timeout,
    get_request_context,
    get_session_manager,
)

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.post(
    "/maintenance/sweep",
    status_code=status.HTTP_200_OK,
    response_model=SweepResponse,
    dependencies=[Depends(verify_admin_api_key)],
)
async def sweep_expired(
    context: RequestContext = Depends(get_request_context),
    session_manager: SessionManager = Depends(get_session_manager),
    tracker: LoginAttemptTracker = Depends(get_login_attempt_tracker),
    audit: AuditLogger = Depends(get_audit_logger),
    timeout: float = Depends(get_operation_timeout),
):
    """
    Sweep Expired Sessions

    Deletes expired sessions and prunes expired login attempts. Safe to run
    while other requests are in flight.

    Requires: X-Admin-API-Key header

    Raises:
        - 401 Unauthorized: Missing or invalid admin API key
    """
    use_case = SweepExpiredUseCase(session_manager, tracker, audit)
    result = await bounded(use_case.execute(context), timeout, "maintenance sweep")

    if result.is_err():
        raise_for_error(result.error)

    return result.value
