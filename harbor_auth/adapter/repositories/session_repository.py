from datetime import datetime
from typing import List, Optional

from sqlalchemy import delete
from sqlmodel import select, update
from sqlmodel.ext.asyncio.session import AsyncSession

from harbor_auth.app.repositories.session_repository import ISessionRepository
from harbor_auth.domain.entities import Session


class SessionRepository(ISessionRepository):
    """Session repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, session_id: str) -> Optional[Session]:
        """Get session by ID"""
        stmt = select(Session).where(Session.id == session_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, session_obj: Session) -> Session:
        """Create a new session"""
        self.session.add(session_obj)
        await self.session.flush()
        await self.session.refresh(session_obj)
        return session_obj

    async def update(self, session_obj: Session) -> Session:
        """Update existing session"""
        self.session.add(session_obj)
        await self.session.flush()
        await self.session.refresh(session_obj)
        return session_obj

    async def list_live_by_subject(self, subject_id: str, now: datetime) -> List[Session]:
        stmt = (
            select(Session)
            .where(
                Session.subject_id == subject_id,
                Session.revoked == False,
                Session.expires_at > now,
            )
            .order_by(Session.last_activity.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def rotate_refresh_token(
        self,
        session_id: str,
        expected_hash: str,
        expected_count: int,
        new_hash: str,
        now: datetime,
        consumed_hashes: List[str],
    ) -> bool:
        """
        Single conditional UPDATE; the WHERE clause is the guard.

        A caller presenting an already-rotated secret matches zero rows.
        """
        stmt = (
            update(Session)
            .where(
                Session.id == session_id,
                Session.refresh_token_hash == expected_hash,
                Session.refresh_count == expected_count,
                Session.revoked == False,
            )
            .values(
                refresh_token_hash=new_hash,
                consumed_refresh_token_hashes=consumed_hashes,
                refresh_count=expected_count + 1,
                last_activity=now,
            )
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount == 1

    async def revoke_by_id(self, session_id: str, reason: str, now: datetime) -> bool:
        """Revoke a specific session by ID"""
        stmt = (
            update(Session)
            .where(
                Session.id == session_id,
                Session.revoked == False,
                Session.expires_at > now,
            )
            .values(revoked=True, revoked_at=now, revoked_reason=reason)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount > 0

    async def revoke_all_by_subject(
        self,
        subject_id: str,
        reason: str,
        now: datetime,
        exclude_session_id: Optional[str] = None,
    ) -> List[str]:
        """Revoke all active sessions for a subject, optionally keeping one"""
        conditions = [
            Session.subject_id == subject_id,
            Session.revoked == False,
            Session.expires_at > now,
        ]
        if exclude_session_id:
            conditions.append(Session.id != exclude_session_id)

        result = await self.session.execute(select(Session.id).where(*conditions))
        session_ids = list(result.scalars().all())
        if not session_ids:
            return []

        stmt = (
            update(Session)
            .where(Session.id.in_(session_ids), Session.revoked == False)
            .values(revoked=True, revoked_at=now, revoked_reason=reason)
        )
        await self.session.execute(stmt)
        await self.session.flush()
        return session_ids

    async def delete_expired(self, now: datetime) -> int:
        stmt = delete(Session).where(Session.expires_at <= now)
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount
