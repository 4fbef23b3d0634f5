"""
LoginAttempt Entity

Append-only record of an authentication attempt.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, SQLModel

from harbor_auth.domain.base import utcnow


class LoginAttempt(SQLModel, table=True):
    """
    LoginAttempt entity - one authentication attempt, successful or not.

    Business Rules:
    - Never updated after insert
    - expires_at marks the record for pruning (time-to-live)
    - Counted over a trailing window to decide lockout and rate limiting
    """

    __tablename__ = "login_attempts"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    account_id: str = Field(max_length=255)  # normalised e-mail
    ip_address: str = Field(max_length=64)
    user_agent: Optional[str] = Field(default=None, max_length=512)

    success: bool = Field(default=False)
    failure_reason: Optional[str] = Field(default=None, max_length=64)

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))
    expires_at: datetime = Field(sa_column=Column(DateTime))

    __table_args__ = (
        Index("idx_login_attempt_account_created", "account_id", "created_at"),
        Index("idx_login_attempt_ip_created", "ip_address", "created_at"),
        Index("idx_login_attempt_expires_at", "expires_at"),
    )
