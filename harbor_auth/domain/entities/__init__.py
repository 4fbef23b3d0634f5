"""
Harbor Auth Domain Entities

All domain entities organized by model.
Each entity in its own file for better maintainability.
"""

# Export all enums
from .enums import (
    Role,
    Permission,
    SessionLimitStrategy,
    StepUpState,
    AuditAction,
    AuditOutcome,
)

# Export all entities
from .session import Session
from .login_attempt import LoginAttempt
from .audit_event import AuditEvent

__all__ = [
    # Enums
    "Role",
    "Permission",
    "SessionLimitStrategy",
    "StepUpState",
    "AuditAction",
    "AuditOutcome",
    # Entities
    "Session",
    "LoginAttempt",
    "AuditEvent",
]
