from typing import NoReturn

from fastapi import status

from harbor_auth.domain.errors import AuthErrorCode
from harbor_auth.libs.result import Error


class ClientError(Exception):
    def __init__(self, base_error: Error, status_code: int = status.HTTP_400_BAD_REQUEST):
        self.base_error = base_error
        self.status_code = status_code
        super().__init__(base_error.message)


class ServerError(Exception):
    def __init__(
        self, base_error: Error, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    ):
        self.base_error = base_error
        self.status_code = status_code
        super().__init__(base_error.message)


CLIENT_ERROR_STATUS = {
    AuthErrorCode.MALFORMED_TOKEN: status.HTTP_400_BAD_REQUEST,
    AuthErrorCode.INVALID_SIGNATURE: status.HTTP_401_UNAUTHORIZED,
    AuthErrorCode.INVALID_AUDIENCE: status.HTTP_401_UNAUTHORIZED,
    AuthErrorCode.EXPIRED: status.HTTP_401_UNAUTHORIZED,
    AuthErrorCode.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    AuthErrorCode.SECURITY_ERROR: status.HTTP_401_UNAUTHORIZED,
    AuthErrorCode.INVALID_CREDENTIALS: status.HTTP_401_UNAUTHORIZED,
    AuthErrorCode.INVALID_MFA_CODE: status.HTTP_401_UNAUTHORIZED,
    AuthErrorCode.STEP_UP_SETUP_REQUIRED: status.HTTP_403_FORBIDDEN,
    AuthErrorCode.STEP_UP_VERIFICATION_REQUIRED: status.HTTP_403_FORBIDDEN,
    AuthErrorCode.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    AuthErrorCode.SESSION_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    AuthErrorCode.SESSION_LIMIT: status.HTTP_409_CONFLICT,
    AuthErrorCode.LOCKED_OUT: status.HTTP_423_LOCKED,
    AuthErrorCode.RATE_LIMITED: status.HTTP_429_TOO_MANY_REQUESTS,
}

UNAVAILABLE_CODES = (
    AuthErrorCode.IDENTITY_PROVIDER_UNAVAILABLE,
    AuthErrorCode.OPERATION_TIMEOUT,
    AuthErrorCode.AUDIT_UNAVAILABLE,
)


def raise_for_error(error: Error) -> NoReturn:
    """Translate a use case Error into the matching HTTP exception"""
    if error.code in CLIENT_ERROR_STATUS:
        raise ClientError(error, status_code=CLIENT_ERROR_STATUS[error.code])
    if error.code in UNAVAILABLE_CODES:
        raise ServerError(error, status_code=status.HTTP_503_SERVICE_UNAVAILABLE)
    raise ServerError(error)
