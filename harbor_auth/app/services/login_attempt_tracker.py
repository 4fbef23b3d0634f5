"""
Login-Attempt Tracker

Records authentication attempts and answers two advisory questions: is this
account locked out, and is this origin address rate limited. The tracker never
blocks by itself; the login flow decides what to do with the answers.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from harbor_auth.app.services.security_settings import SecuritySettings
from harbor_auth.app.services.unit_of_work import UnitOfWork
from harbor_auth.domain.base import utcnow
from harbor_auth.domain.entities import LoginAttempt

logger = logging.getLogger(__name__)


def normalize_account_id(account_id: str) -> str:
    return (account_id or "").strip().lower()


class LoginAttemptTracker:
    def __init__(
        self,
        uow: UnitOfWork,
        settings: SecuritySettings,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.uow = uow
        self.settings = settings
        self.clock = clock

    async def record_attempt(
        self,
        account_id: str,
        ip_address: str,
        success: bool,
        failure_reason: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> LoginAttempt:
        now = self.clock()
        attempt = LoginAttempt(
            account_id=normalize_account_id(account_id),
            ip_address=ip_address,
            user_agent=user_agent,
            success=success,
            failure_reason=None if success else failure_reason,
            created_at=now,
            expires_at=now + self.settings.login_attempt_retention,
        )
        async with self.uow:
            await self.uow.login_attempts.create(attempt)
            await self.uow.commit()
        return attempt

    async def failure_count(self, account_id: str) -> int:
        """Failures that currently count towards the account lockout"""
        account_id = normalize_account_id(account_id)
        now = self.clock()
        since = now - self.settings.lockout_window

        async with self.uow:
            if self.settings.login_success_resets_lockout:
                last_success = await self.uow.login_attempts.latest_success_at(account_id, now)
                if last_success is not None and last_success > since:
                    since = last_success
            return await self.uow.login_attempts.count_failures_for_account(
                account_id, since, now
            )

    async def is_locked_out(self, account_id: str) -> bool:
        failures = await self.failure_count(account_id)
        locked = failures >= self.settings.lockout_threshold
        if locked:
            logger.warning(
                f"Account locked out after {failures} failed attempts: "
                f"{normalize_account_id(account_id)}"
            )
        return locked

    async def is_rate_limited(self, ip_address: str) -> bool:
        now = self.clock()
        since = now - self.settings.origin_rate_limit_window
        async with self.uow:
            failures = await self.uow.login_attempts.count_failures_for_address(
                ip_address, since, now
            )
        limited = failures >= self.settings.origin_rate_limit_threshold
        if limited:
            logger.warning(f"Origin rate limited after {failures} failed attempts: {ip_address}")
        return limited

    async def prune_expired(self) -> int:
        async with self.uow:
            deleted = await self.uow.login_attempts.delete_expired(self.clock())
            await self.uow.commit()
        logger.info(f"Pruned {deleted} expired login attempts")
        return deleted
