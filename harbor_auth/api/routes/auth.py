from typing import Optional

from fastapi import APIRouter, Depends, Header, status
from pydantic import BaseModel, EmailStr, Field

from harbor_auth.api.error import raise_for_error
from harbor_auth.app.services.audit_logger import AuditLogger
from harbor_auth.app.services.identity_provider import IIdentityProvider
from harbor_auth.app.services.login_attempt_tracker import LoginAttemptTracker
from harbor_auth.app.services.session_manager import SessionManager
from harbor_auth.app.services.timeouts import bounded
from harbor_auth.app.services.token_validator import TokenValidator
from harbor_auth.app.use_cases.auth import (
    LoginResponse,
    LoginUseCase,
    MeResponse,
    RefreshTokenResponse,
    StepUpResponse,
    StepUpUseCase,
)
from harbor_auth.domain.claims import DeviceInfo, EnrichedClaims, RequestContext
from harbor_auth.domain.entities import Session
from harbor_auth.depends import (
    get_audit_logger,
    get_current_claims,
    get_current_session,
    get_identity_provider,
    get_identity_validator,
    get_login_attempt_tracker,
    get_operation_timeout,
    get_request_context,
    get_session_manager,
)

router = APIRouter(prefix="/auth", tags=["Authentication"])


class LoginRequest(BaseModel):
    """
    Login HTTP request payload

    Validates incoming login request.
    """

    email: EmailStr = Field(..., description="Account email address")
    password: str = Field(..., min_length=1, description="Account password")


@router.post("/login", status_code=status.HTTP_200_OK, response_model=LoginResponse)
async def login(
    request: LoginRequest,
    x_device_fingerprint: Optional[str] = Header(None),
    context: RequestContext = Depends(get_request_context),
    tracker: LoginAttemptTracker = Depends(get_login_attempt_tracker),
    identity_provider: IIdentityProvider = Depends(get_identity_provider),
    identity_validator: TokenValidator = Depends(get_identity_validator),
    session_manager: SessionManager = Depends(get_session_manager),
    audit: AuditLogger = Depends(get_audit_logger),
    timeout: float = Depends(get_operation_timeout),
):
    """
    Login

    Authenticates with the identity provider and opens a session.

    Raises:
        - 401 Unauthorized: Invalid credentials
        - 409 Conflict: Concurrent session limit reached (reject strategy)
        - 423 Locked: Too many failed attempts for this account
        - 429 Too Many Requests: Too many failed attempts from this address
        - 503 Service Unavailable: Identity provider unavailable or timed out
    """
    device = DeviceInfo(
        ip_address=context.ip_address,
        user_agent=context.user_agent,
        fingerprint=x_device_fingerprint,
    )
    use_case = LoginUseCase(tracker, identity_provider, identity_validator, session_manager, audit)
    result = await bounded(
        use_case.execute(request.email, request.password, device, context), timeout, "login"
    )

    if result.is_err():
        raise_for_error(result.error)

    return result.value


class RefreshRequest(BaseModel):
    """
    Refresh token HTTP request payload
    """

    refresh_token: str = Field(..., description="Refresh token")


@router.post("/refresh", status_code=status.HTTP_200_OK, response_model=RefreshTokenResponse)
async def refresh(
    request: RefreshRequest,
    x_device_fingerprint: Optional[str] = Header(None),
    context: RequestContext = Depends(get_request_context),
    session_manager: SessionManager = Depends(get_session_manager),
    timeout: float = Depends(get_operation_timeout),
):
    """
    Refresh Token

    Exchanges a refresh token for a new token pair. Refresh tokens rotate:
    each one can be used exactly once.

    Raises:
        - 401 Unauthorized: Unknown, expired or revoked session (UNAUTHORIZED)
        - 401 Unauthorized: Replayed token, device mismatch or refresh limit
          reached (SECURITY_ERROR, the session is revoked)
        - 503 Service Unavailable: Timed out
    """
    result = await bounded(
        session_manager.refresh(request.refresh_token, x_device_fingerprint, context),
        timeout,
        "token refresh",
    )

    if result.is_err():
        raise_for_error(result.error)

    issued = result.value
    return RefreshTokenResponse(
        access_token=issued.access_token,
        refresh_token=issued.refresh_token,
        session_id=issued.session_id,
        token_type=issued.token_type,
        expires_in=issued.expires_in,
        audit_recorded=issued.audit_recorded,
    )


class LogoutResponse(BaseModel):
    message: str
    session_id: str
    audit_recorded: bool


@router.post("/logout", status_code=status.HTTP_200_OK, response_model=LogoutResponse)
async def logout(
    session: Session = Depends(get_current_session),
    context: RequestContext = Depends(get_request_context),
    session_manager: SessionManager = Depends(get_session_manager),
    timeout: float = Depends(get_operation_timeout),
):
    """
    Logout

    Revokes the session the access token is bound to.
    """
    result = await bounded(
        session_manager.invalidate(session.id, context, reason="logout"), timeout, "logout"
    )

    if result.is_err():
        raise_for_error(result.error)

    return {
        "message": "Logged out",
        "session_id": session.id,
        "audit_recorded": result.value.audit_recorded,
    }


class StepUpRequest(BaseModel):
    code: str = Field(..., min_length=1, max_length=16, description="Second-factor code")


@router.post("/step-up", status_code=status.HTTP_200_OK, response_model=StepUpResponse)
async def step_up(
    request: StepUpRequest,
    session: Session = Depends(get_current_session),
    context: RequestContext = Depends(get_request_context),
    identity_provider: IIdentityProvider = Depends(get_identity_provider),
    session_manager: SessionManager = Depends(get_session_manager),
    audit: AuditLogger = Depends(get_audit_logger),
    timeout: float = Depends(get_operation_timeout),
):
    """
    Step-Up Verification

    Verifies a second-factor code and marks the current session as verified
    for privileged operations.

    Raises:
        - 401 Unauthorized: Invalid code or inactive session
        - 403 Forbidden: No second factor configured (STEP_UP_SETUP_REQUIRED)
    """
    use_case = StepUpUseCase(identity_provider, session_manager, audit)
    result = await bounded(use_case.execute(session, request.code, context), timeout, "step-up")

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.get("/me", status_code=status.HTTP_200_OK, response_model=MeResponse)
async def me(
    claims: EnrichedClaims = Depends(get_current_claims),
    session: Session = Depends(get_current_session),
    session_manager: SessionManager = Depends(get_session_manager),
):
    """
    Current Identity

    Returns the enriched identity and the step-up state of the current session.
    """
    return MeResponse(
        subject_id=claims.subject_id,
        email=claims.email,
        role=claims.role.value,
        permissions=sorted(p.value for p in claims.permissions),
        groups=list(claims.groups),
        session_id=session.id,
        step_up=session_manager.step_up_state(session, claims.role).value,
        session_expires_at=session.expires_at,
    )
