"""
Authentication Use Case DTOs (Data Transfer Objects)

All Response classes for the auth domain.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class LoginResponse(BaseModel):
    """Response for login use case"""

    access_token: str
    refresh_token: str
    session_id: str
    token_type: str = "Bearer"
    expires_in: int
    session_expires_at: datetime
    role: str
    permissions: List[str]
    step_up: str
    evicted_session_ids: List[str] = []
    audit_recorded: bool = True


class RefreshTokenResponse(BaseModel):
    """Response for refresh token operation"""

    access_token: str
    refresh_token: str
    session_id: str
    token_type: str = "Bearer"
    expires_in: int
    audit_recorded: bool = True


class StepUpResponse(BaseModel):
    """Response for step-up verification use case"""

    session_id: str
    mfa_verified: bool
    mfa_expires_at: Optional[datetime]


class MeResponse(BaseModel):
    """Identity of the caller as seen by this service"""

    subject_id: str
    email: Optional[str]
    role: str
    permissions: List[str]
    groups: List[str]
    session_id: str
    step_up: str
    session_expires_at: datetime
