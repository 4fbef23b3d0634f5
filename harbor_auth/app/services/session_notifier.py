from abc import ABC, abstractmethod

from harbor_auth.domain.entities import Session


class ISessionNotifier(ABC):
    """Tells a subject that one of its sessions was ended by policy"""

    @abstractmethod
    async def session_evicted(self, session: Session, reason: str) -> None:
        pass
