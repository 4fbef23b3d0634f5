"""
Harbor Auth Domain Enums

Closed sets used across the domain entities and services.
"""

from enum import Enum


class Role(str, Enum):
    """Internal role resolved from identity-provider group membership"""

    user = "user"
    support = "support"
    moderator = "moderator"
    manager = "manager"
    admin = "admin"
    super_admin = "super_admin"


class Permission(str, Enum):
    """Capability tag granted through a role"""

    user_management = "user_management"
    content_moderation = "content_moderation"
    financial_access = "financial_access"
    system_config = "system_config"
    analytics_view = "analytics_view"
    audit_log_view = "audit_log_view"
    tier_management = "tier_management"
    capability_assignment = "capability_assignment"
    billing_management = "billing_management"
    sales_management = "sales_management"
    platform_settings = "platform_settings"
    support_access = "support_access"


class SessionLimitStrategy(str, Enum):
    """What to do when a subject already holds the maximum number of sessions"""

    reject = "reject"
    evict_oldest = "evict_oldest"
    allow = "allow"


class StepUpState(str, Enum):
    """Step-up verification state of a session for its role"""

    not_required = "not_required"
    satisfied = "satisfied"
    setup_required = "setup_required"
    verification_required = "verification_required"


class AuditAction(str, Enum):
    """Security-relevant action recorded in the audit trail"""

    login = "LOGIN"
    login_failed = "LOGIN_FAILED"
    logout = "LOGOUT"
    token_refresh = "TOKEN_REFRESH"
    session_revoked = "SESSION_REVOKED"
    session_evicted = "SESSION_EVICTED"
    session_limit_rejected = "SESSION_LIMIT_REJECTED"
    security_violation = "SECURITY_VIOLATION"
    mfa_verify = "MFA_VERIFY"
    account_locked = "ACCOUNT_LOCKED"
    rate_limit_exceeded = "RATE_LIMIT_EXCEEDED"
    sessions_swept = "SESSIONS_SWEPT"


class AuditOutcome(str, Enum):
    """Outcome of an audited action"""

    success = "success"
    failure = "failure"
    denied = "denied"
