"""
Error codes returned by the auth core, plus the one exception it raises.
"""

from typing import Optional


class AuthErrorCode:
    # Token validation
    MALFORMED_TOKEN = "MALFORMED_TOKEN"
    INVALID_SIGNATURE = "INVALID_SIGNATURE"
    INVALID_AUDIENCE = "INVALID_AUDIENCE"
    EXPIRED = "EXPIRED"
    IDENTITY_PROVIDER_UNAVAILABLE = "IDENTITY_PROVIDER_UNAVAILABLE"

    # Sessions
    UNAUTHORIZED = "UNAUTHORIZED"
    SECURITY_ERROR = "SECURITY_ERROR"
    SESSION_LIMIT = "SESSION_LIMIT"
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    STEP_UP_SETUP_REQUIRED = "STEP_UP_SETUP_REQUIRED"
    STEP_UP_VERIFICATION_REQUIRED = "STEP_UP_VERIFICATION_REQUIRED"

    # Login
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    INVALID_MFA_CODE = "INVALID_MFA_CODE"
    LOCKED_OUT = "LOCKED_OUT"
    RATE_LIMITED = "RATE_LIMITED"

    FORBIDDEN = "FORBIDDEN"
    AUDIT_UNAVAILABLE = "AUDIT_UNAVAILABLE"
    OPERATION_TIMEOUT = "OPERATION_TIMEOUT"


class AuditUnavailableError(Exception):
    """The audit store could not persist an event. Never swallowed silently."""

    code = AuthErrorCode.AUDIT_UNAVAILABLE

    def __init__(self, event, cause: Optional[BaseException] = None):
        self.event = event
        self.cause = cause
        super().__init__(f"Audit store unavailable for action {event.action}: {cause!r}")
