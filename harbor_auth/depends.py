import uuid
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import Depends, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession
from config import ApplicationConfig
from harbor_auth.adapter.services.jwks_key_provider import JwksKeyProvider
from harbor_auth.adapter.services.local_identity_provider import LocalIdentityProvider
from harbor_auth.adapter.services.session_notifier import LoggingSessionNotifier
from harbor_auth.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from harbor_auth.api.error import ClientError, raise_for_error
from harbor_auth.app.services.audit_logger import AuditLogger
from harbor_auth.app.services.identity_provider import IIdentityProvider
from harbor_auth.app.services.key_provider import ISigningKeyProvider, StaticKeyProvider
from harbor_auth.app.services.login_attempt_tracker import LoginAttemptTracker
from harbor_auth.app.services.security_settings import SecuritySettings
from harbor_auth.app.services.session_manager import SessionManager
from harbor_auth.app.services.session_notifier import ISessionNotifier
from harbor_auth.app.services.timeouts import bounded
from harbor_auth.app.services.token_issuer import TokenIssuer
from harbor_auth.app.services.token_validator import TokenValidator
from harbor_auth.domain.base import utcnow
from harbor_auth.domain.claims import EnrichedClaims, RequestContext
from harbor_auth.domain.entities import Session
from harbor_auth.domain.errors import AuthErrorCode
from harbor_auth.libs.result import Error

engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)

security = HTTPBearer(auto_error=False)

SETTINGS = SecuritySettings.from_config(ApplicationConfig)

if ApplicationConfig.IDP_JWKS_URL:
    IDENTITY_KEY_PROVIDER: ISigningKeyProvider = JwksKeyProvider(
        ApplicationConfig.IDP_JWKS_URL,
        timeout_seconds=ApplicationConfig.HTTP_TIMEOUT_SECONDS,
        cache_ttl=timedelta(seconds=ApplicationConfig.JWKS_CACHE_TTL_SECONDS),
    )
    IDENTITY_ALGORITHMS = ("RS256",)
else:
    IDENTITY_KEY_PROVIDER = StaticKeyProvider(ApplicationConfig.IDP_LOCAL_SECRET)
    IDENTITY_ALGORITHMS = ("HS256",)


async def get_unit_of_work():
    async with AsyncSessionLocal() as session:
        yield SqlAlchemyUnitOfWork(session)


@asynccontextmanager
async def open_unit_of_work():
    """Short-lived unit of work, independent of the request's own"""
    async with AsyncSessionLocal() as session:
        async with SqlAlchemyUnitOfWork(session) as uow:
            yield uow


def get_audit_uow_factory():
    return open_unit_of_work


def get_clock():
    return utcnow


def get_settings() -> SecuritySettings:
    return SETTINGS


def get_operation_timeout() -> float:
    return ApplicationConfig.OPERATION_TIMEOUT_SECONDS


def get_identity_validator(
    settings: SecuritySettings = Depends(get_settings), clock=Depends(get_clock)
) -> TokenValidator:
    return TokenValidator(
        settings.identity_verification,
        IDENTITY_KEY_PROVIDER,
        algorithms=IDENTITY_ALGORITHMS,
        clock=clock,
    )


def get_session_validator(
    settings: SecuritySettings = Depends(get_settings), clock=Depends(get_clock)
) -> TokenValidator:
    return TokenValidator(
        settings.session_verification,
        StaticKeyProvider(ApplicationConfig.JWT_SECRET),
        algorithms=("HS256",),
        clock=clock,
    )


def get_token_issuer(clock=Depends(get_clock)) -> TokenIssuer:
    return TokenIssuer(
        ApplicationConfig.JWT_SECRET,
        ApplicationConfig.JWT_ISSUER,
        ApplicationConfig.JWT_AUDIENCE,
        ttl=timedelta(minutes=ApplicationConfig.ACCESS_TOKEN_TTL_MINUTES),
        clock=clock,
    )


def get_identity_provider(clock=Depends(get_clock)) -> IIdentityProvider:
    return LocalIdentityProvider(
        ApplicationConfig.LOCAL_USERS,
        ApplicationConfig.IDP_LOCAL_SECRET,
        ApplicationConfig.IDP_ISSUER,
        ApplicationConfig.IDP_CLIENT_ID,
        clock=clock,
    )


def get_session_notifier() -> ISessionNotifier:
    return LoggingSessionNotifier()


def get_audit_logger(
    uow_factory=Depends(get_audit_uow_factory),
    settings: SecuritySettings = Depends(get_settings),
    clock=Depends(get_clock),
) -> AuditLogger:
    return AuditLogger.from_settings(uow_factory, settings, clock=clock)


def get_session_manager(
    uow=Depends(get_unit_of_work),
    settings: SecuritySettings = Depends(get_settings),
    issuer: TokenIssuer = Depends(get_token_issuer),
    audit: AuditLogger = Depends(get_audit_logger),
    notifier: ISessionNotifier = Depends(get_session_notifier),
    clock=Depends(get_clock),
) -> SessionManager:
    return SessionManager(uow, settings, issuer, audit, notifier=notifier, clock=clock)


def get_login_attempt_tracker(
    uow=Depends(get_unit_of_work),
    settings: SecuritySettings = Depends(get_settings),
    clock=Depends(get_clock),
) -> LoginAttemptTracker:
    return LoginAttemptTracker(uow, settings, clock=clock)


def get_request_context(request: Request) -> RequestContext:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        ip_address = forwarded.split(",")[0].strip()
    elif request.client:
        ip_address = request.client.host
    else:
        ip_address = "unknown"
    return RequestContext(
        ip_address=ip_address,
        user_agent=request.headers.get("user-agent"),
        request_id=request.headers.get("x-request-id") or str(uuid.uuid4()),
    )


async def get_current_claims(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    validator: TokenValidator = Depends(get_session_validator),
    timeout: float = Depends(get_operation_timeout),
) -> EnrichedClaims:
    """
    Validate the bearer access token.

    Raises:
        ClientError: 401 when the token is missing or invalid
    """
    if credentials is None:
        raise ClientError(
            Error(AuthErrorCode.UNAUTHORIZED, "Bearer token required"),
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    result = await bounded(validator.validate(credentials.credentials), timeout, "token validation")
    if result.is_err():
        raise_for_error(result.error)
    return result.value


async def get_current_session(
    claims: EnrichedClaims = Depends(get_current_claims),
    session_manager: SessionManager = Depends(get_session_manager),
    timeout: float = Depends(get_operation_timeout),
) -> Session:
    """The live session the access token is bound to"""
    result = await bounded(session_manager.resolve_session(claims), timeout, "session lookup")
    if result.is_err():
        raise_for_error(result.error)
    return result.value

