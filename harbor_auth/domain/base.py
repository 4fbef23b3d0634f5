import secrets
from datetime import UTC, datetime


def generate_session_id() -> str:
    return secrets.token_urlsafe(32)


def utcnow() -> datetime:
    """Naive UTC timestamp; every stored datetime uses this form."""
    return datetime.now(UTC).replace(tzinfo=None)
