from datetime import datetime
from typing import Optional

from sqlalchemy import delete, func
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from harbor_auth.app.repositories.login_attempt_repository import ILoginAttemptRepository
from harbor_auth.domain.entities import LoginAttempt


class LoginAttemptRepository(ILoginAttemptRepository):
    """LoginAttempt repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, attempt: LoginAttempt) -> LoginAttempt:
        self.session.add(attempt)
        await self.session.flush()
        await self.session.refresh(attempt)
        return attempt

    async def count_failures_for_account(
        self, account_id: str, since: datetime, now: datetime
    ) -> int:
        stmt = select(func.count()).select_from(LoginAttempt).where(
            LoginAttempt.account_id == account_id,
            LoginAttempt.success == False,
            LoginAttempt.created_at > since,
            LoginAttempt.expires_at > now,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def count_failures_for_address(
        self, ip_address: str, since: datetime, now: datetime
    ) -> int:
        stmt = select(func.count()).select_from(LoginAttempt).where(
            LoginAttempt.ip_address == ip_address,
            LoginAttempt.success == False,
            LoginAttempt.created_at > since,
            LoginAttempt.expires_at > now,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def latest_success_at(self, account_id: str, now: datetime) -> Optional[datetime]:
        stmt = select(func.max(LoginAttempt.created_at)).where(
            LoginAttempt.account_id == account_id,
            LoginAttempt.success == True,
            LoginAttempt.expires_at > now,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def delete_expired(self, now: datetime) -> int:
        stmt = delete(LoginAttempt).where(LoginAttempt.expires_at <= now)
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount
