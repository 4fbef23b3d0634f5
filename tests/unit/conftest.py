import pytest
from unittest.mock import AsyncMock, MagicMock

from harbor_auth.app.services.security_settings import SecuritySettings
from tests.fixtures.clock import FakeClock


@pytest.fixture
def mock_uow():
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock(return_value=False)  # Must return False to not suppress exceptions
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()
    return uow


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings():
    return SecuritySettings()


@pytest.fixture
def mock_audit():
    audit = MagicMock()
    audit.record = AsyncMock(return_value=True)
    return audit
