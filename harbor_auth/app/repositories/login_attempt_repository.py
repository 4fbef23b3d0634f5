from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from harbor_auth.domain.entities import LoginAttempt


class ILoginAttemptRepository(ABC):
    """LoginAttempt repository interface - application layer"""

    @abstractmethod
    async def create(self, attempt: LoginAttempt) -> LoginAttempt:
        """Append an attempt (never updated afterwards)"""
        pass

    @abstractmethod
    async def count_failures_for_account(
        self, account_id: str, since: datetime, now: datetime
    ) -> int:
        """Failed attempts for an account created after `since` and not yet expired"""
        pass

    @abstractmethod
    async def count_failures_for_address(
        self, ip_address: str, since: datetime, now: datetime
    ) -> int:
        """Failed attempts from an address created after `since` and not yet expired"""
        pass

    @abstractmethod
    async def latest_success_at(self, account_id: str, now: datetime) -> Optional[datetime]:
        """Time of the most recent unexpired successful attempt for an account"""
        pass

    @abstractmethod
    async def delete_expired(self, now: datetime) -> int:
        """Delete attempts with expires_at <= now. Returns count deleted."""
        pass
