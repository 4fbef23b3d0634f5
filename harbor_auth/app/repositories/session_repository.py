from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from harbor_auth.domain.entities import Session


class ISessionRepository(ABC):
    """Session repository interface - application layer"""

    @abstractmethod
    async def get_by_id(self, session_id: str) -> Optional[Session]:
        """Get session by ID (revoked and expired sessions included)"""
        pass

    @abstractmethod
    async def create(self, session: Session) -> Session:
        """Create a new session"""
        pass

    @abstractmethod
    async def update(self, session: Session) -> Session:
        """Update existing session"""
        pass

    @abstractmethod
    async def list_live_by_subject(self, subject_id: str, now: datetime) -> List[Session]:
        """Non-revoked, unexpired sessions of a subject, most recently active first"""
        pass

    @abstractmethod
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
        Compare-and-swap the refresh token hash.

        Returns True only if the session still held expected_hash and
        expected_count and was not revoked; exactly one concurrent caller wins.
        consumed_hashes replaces the list of hashes already rotated out.
        """
        pass

    @abstractmethod
    async def revoke_by_id(self, session_id: str, reason: str, now: datetime) -> bool:
        """Revoke a specific session. Returns True if it was live and is now revoked."""
        pass

    @abstractmethod
    async def revoke_all_by_subject(
        self,
        subject_id: str,
        reason: str,
        now: datetime,
        exclude_session_id: Optional[str] = None,
    ) -> List[str]:
        """Revoke every non-revoked session of a subject. Returns the revoked ids."""
        pass

    @abstractmethod
    async def delete_expired(self, now: datetime) -> int:
        """Delete sessions with expires_at <= now. Returns count deleted."""
        pass
