import logging

from harbor_auth.app.services.session_notifier import ISessionNotifier
from harbor_auth.domain.entities import Session

logger = logging.getLogger(__name__)


class LoggingSessionNotifier(ISessionNotifier):
    """Records eviction notices in the service log (no outbound delivery)"""

    async def session_evicted(self, session: Session, reason: str) -> None:
        logger.info(
            f"Session {session.id} of {session.subject_id} ended ({reason}); "
            f"device={session.user_agent or 'unknown'} ip={session.ip_address or 'unknown'}"
        )
