"""
Session Use Case DTOs
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from harbor_auth.domain.entities import Session


class SessionInfo(BaseModel):
    """One live session as shown to its owner"""

    session_id: str
    role: str
    ip_address: Optional[str]
    user_agent: Optional[str]
    created_at: datetime
    last_activity: datetime
    expires_at: datetime
    mfa_verified: bool
    refresh_count: int
    current: bool = False

    @classmethod
    def from_session(cls, session: Session, current_session_id: Optional[str] = None) -> "SessionInfo":
        return cls(
            session_id=session.id,
            role=session.role.value,
            ip_address=session.ip_address,
            user_agent=session.user_agent,
            created_at=session.created_at,
            last_activity=session.last_activity,
            expires_at=session.expires_at,
            mfa_verified=session.mfa_verified,
            refresh_count=session.refresh_count,
            current=session.id == current_session_id,
        )


class SessionListResponse(BaseModel):
    sessions: List[SessionInfo]


class RevokeSessionsResponse(BaseModel):
    """Response for session revocation operations"""

    message: str
    revoked_count: int
    session_ids: List[str]
    audit_recorded: bool = True


class SweepResponse(BaseModel):
    """Response for the expiry sweep"""

    sessions_deleted: int
    login_attempts_deleted: int
    audit_recorded: bool = True
