"""
Use Cases

Organized into domain folders:
- auth/: Login and step-up verification
- sessions/: Session revocation and housekeeping
- audit/: Audit log queries

Import from subdirectories for better organization.
"""

from .auth import (
    LoginUseCase,
    StepUpUseCase,
)
from .sessions import (
    RevokeSessionsUseCase,
    SweepExpiredUseCase,
)
from .audit import (
    GetAuditEventsUseCase,
)

__all__ = [
    # Auth
    "LoginUseCase",
    "StepUpUseCase",
    # Sessions
    "RevokeSessionsUseCase",
    "SweepExpiredUseCase",
    # Audit
    "GetAuditEventsUseCase",
]
