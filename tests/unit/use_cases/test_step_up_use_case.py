from datetime import datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from harbor_auth.app.use_cases.auth.step_up_use_case import StepUpUseCase
from harbor_auth.domain.claims import RequestContext
from harbor_auth.domain.entities import AuditAction, AuditOutcome, Role, Session
from harbor_auth.domain.errors import AuthErrorCode
from harbor_auth.libs.result import Error, Return

CONTEXT = RequestContext(ip_address="198.51.100.7")
NOW = datetime(2026, 3, 2, 12, 0, 0)


@pytest.fixture
def session():
    return Session(
        id="admin-session",
        subject_id="sub-admin-1",
        role=Role.admin,
        mfa_enrolled=True,
        expires_at=NOW + timedelta(hours=8),
    )


@pytest.fixture
def identity_provider():
    provider = MagicMock()
    provider.verify_mfa = AsyncMock(return_value=Return.ok(True))
    return provider


@pytest.fixture
def session_manager(session):
    manager = MagicMock()

    async def mark(session_id, context):
        session.mfa_verified = True
        session.mfa_expires_at = NOW + timedelta(hours=1)
        return Return.ok(session)

    manager.mark_mfa_verified = AsyncMock(side_effect=mark)
    return manager


@pytest.mark.asyncio
async def test_valid_code_marks_session(session, identity_provider, session_manager, mock_audit):
    use_case = StepUpUseCase(identity_provider, session_manager, mock_audit)

    result = await use_case.execute(session, "246810", CONTEXT)

    assert result.is_ok()
    assert result.value.session_id == "admin-session"
    assert result.value.mfa_verified is True
    assert result.value.mfa_expires_at == NOW + timedelta(hours=1)
    identity_provider.verify_mfa.assert_awaited_once_with("sub-admin-1", "246810")


@pytest.mark.asyncio
async def test_wrong_code_is_audited(session, identity_provider, session_manager, mock_audit):
    identity_provider.verify_mfa.return_value = Return.ok(False)
    use_case = StepUpUseCase(identity_provider, session_manager, mock_audit)

    result = await use_case.execute(session, "000000", CONTEXT)

    assert result.error.code == AuthErrorCode.INVALID_MFA_CODE
    session_manager.mark_mfa_verified.assert_not_called()
    assert mock_audit.record.await_args.args == (AuditAction.mfa_verify, AuditOutcome.failure)


@pytest.mark.asyncio
async def test_no_second_factor_configured(session, identity_provider, session_manager, mock_audit):
    identity_provider.verify_mfa.return_value = Return.err(
        Error(AuthErrorCode.STEP_UP_SETUP_REQUIRED, "No second factor is configured")
    )
    use_case = StepUpUseCase(identity_provider, session_manager, mock_audit)

    result = await use_case.execute(session, "246810", CONTEXT)

    assert result.error.code == AuthErrorCode.STEP_UP_SETUP_REQUIRED
    mock_audit.record.assert_not_called()
