"""
Session Use Cases

Session enumeration, revocation and housekeeping.
"""

from .revoke_sessions_use_case import RevokeSessionsUseCase
from .sweep_expired_use_case import SweepExpiredUseCase
from .dtos import RevokeSessionsResponse, SessionInfo, SessionListResponse, SweepResponse

__all__ = [
    "RevokeSessionsUseCase",
    "SweepExpiredUseCase",
    "RevokeSessionsResponse",
    "SessionInfo",
    "SessionListResponse",
    "SweepResponse",
]
