"""
AuditEvent Entity

Immutable log of security-relevant events.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, JSON, SQLModel

from harbor_auth.domain.base import utcnow


class AuditEvent(SQLModel, table=True):
    """
    AuditEvent entity - immutable log of authentication/authorization events.

    Business Rules:
    - Immutable (never updated or deleted by this service)
    - actor_id nullable for anonymous events (failed login of unknown account)
    - risk_score prioritises alerting only, it never gates access
    - integrity_hash detects tampering with the identifying fields
    """

    __tablename__ = "audit_events"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    actor_id: Optional[str] = Field(default=None, index=True, max_length=255)
    action: str = Field(max_length=64)  # AuditAction value
    resource: Optional[str] = Field(default=None, max_length=255)
    outcome: str = Field(max_length=16)  # AuditOutcome value

    ip_address: Optional[str] = Field(default=None, max_length=64)
    user_agent: Optional[str] = Field(default=None, max_length=512)

    risk_score: float = Field(default=0.0)
    event_metadata: Optional[dict] = Field(default=None, sa_column=Column(JSON))
    integrity_hash: str = Field(default="", max_length=16)

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))

    __table_args__ = (
        Index("idx_audit_created_at", "created_at"),
        Index("idx_audit_actor_created", "actor_id", "created_at"),
        Index("idx_audit_action", "action"),
    )
