from abc import ABC, abstractmethod

from harbor_auth.app.repositories.audit_event_repository import IAuditEventRepository
from harbor_auth.app.repositories.login_attempt_repository import ILoginAttemptRepository
from harbor_auth.app.repositories.session_repository import ISessionRepository


class UnitOfWork(ABC):
    """Abstract UnitOfWork - defines repository access and transaction management"""

    # Repository properties (initialized in __aenter__)
    sessions: ISessionRepository
    login_attempts: ILoginAttemptRepository
    audit_events: IAuditEventRepository

    @abstractmethod
    async def __aenter__(self):
        pass

    @abstractmethod
    async def __aexit__(self, *args):
        pass

    @abstractmethod
    async def commit(self):
        pass

    @abstractmethod
    async def rollback(self):
        pass
