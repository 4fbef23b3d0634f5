"""
Value types passed immutably down the request call chain.
"""

from datetime import datetime
from typing import FrozenSet, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from harbor_auth.domain.entities import Permission, Role


class EnrichedClaims(BaseModel):
    """Identity produced once by the token validator"""

    model_config = ConfigDict(frozen=True)

    subject_id: str
    email: Optional[str] = None
    groups: Tuple[str, ...] = ()
    role: Role = Role.user
    permissions: FrozenSet[Permission] = frozenset()
    session_id: Optional[str] = None
    mfa_enrolled: bool = False
    issued_at: Optional[datetime] = None
    expires_at: datetime

    def has_permission(self, permission: Permission) -> bool:
        return permission in self.permissions


class DeviceInfo(BaseModel):
    """Client descriptor recorded on a session"""

    model_config = ConfigDict(frozen=True)

    ip_address: str
    user_agent: Optional[str] = None
    fingerprint: Optional[str] = None


class RequestContext(BaseModel):
    """Per-request data handed to each operation at invocation time"""

    model_config = ConfigDict(frozen=True)

    ip_address: str = "unknown"
    user_agent: Optional[str] = None
    request_id: Optional[str] = None
