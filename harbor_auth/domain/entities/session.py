"""
Session Entity

Server-side record tying a subject to its device, activity and refresh token.
"""

from datetime import datetime
from typing import List, Optional

from sqlmodel import Column, DateTime, Field, Index, JSON, SQLModel

from harbor_auth.domain.base import generate_session_id, utcnow
from .enums import Role, StepUpState


class Session(SQLModel, table=True):
    """
    Session entity - one authenticated device of a subject.

    Business Rules:
    - Session id is opaque and unguessable (32 random bytes)
    - Only SHA-256 hashes of refresh secrets are stored: the current one and
      every one it replaced, which identify replayed tokens
    - Refresh tokens rotate on every refresh; refresh_count is bounded
    - Revoked sessions stay until the expiry sweep removes them
    - last_activity never passes expires_at
    """

    __tablename__ = "sessions"

    id: str = Field(default_factory=generate_session_id, primary_key=True, max_length=64)

    subject_id: str = Field(nullable=False, index=True, max_length=255)
    email: Optional[str] = Field(default=None, max_length=255)
    role: Role = Field(default=Role.user)
    groups: List[str] = Field(default_factory=list, sa_column=Column(JSON))

    # Device
    ip_address: Optional[str] = Field(default=None, max_length=64)
    user_agent: Optional[str] = Field(default=None, max_length=512)
    device_fingerprint: Optional[str] = Field(default=None, max_length=255)

    # Step-up verification
    mfa_enrolled: bool = Field(default=False)
    mfa_verified: bool = Field(default=False)
    mfa_expires_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))

    # Refresh rotation
    refresh_token_hash: str = Field(default="", max_length=64)  # SHA-256 hex
    consumed_refresh_token_hashes: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    refresh_count: int = Field(default=0)
    max_refresh_count: int = Field(default=50)

    revoked: bool = Field(default=False)
    revoked_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))
    revoked_reason: Optional[str] = Field(default=None, max_length=64)

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))
    last_activity: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))
    expires_at: datetime = Field(sa_column=Column(DateTime))

    __table_args__ = (
        Index("idx_session_expires_at", "expires_at"),
        Index("idx_session_subject_revoked", "subject_id", "revoked"),
    )

    def is_live(self, now: datetime) -> bool:
        return not self.revoked and now < self.expires_at

    def mfa_satisfied(self, now: datetime) -> bool:
        return (
            self.mfa_verified
            and self.mfa_expires_at is not None
            and now < self.mfa_expires_at
        )

    def is_valid(self, now: datetime, mfa_required: bool) -> bool:
        if not self.is_live(now):
            return False
        return self.mfa_satisfied(now) if mfa_required else True

    def step_up_state(self, now: datetime, mfa_required: bool) -> StepUpState:
        if not mfa_required:
            return StepUpState.not_required
        if self.mfa_satisfied(now):
            return StepUpState.satisfied
        if not self.mfa_enrolled:
            return StepUpState.setup_required
        return StepUpState.verification_required
