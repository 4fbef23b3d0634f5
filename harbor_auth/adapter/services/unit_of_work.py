from sqlmodel.ext.asyncio.session import AsyncSession

from harbor_auth.adapter.repositories.audit_event_repository import AuditEventRepository
from harbor_auth.adapter.repositories.login_attempt_repository import LoginAttemptRepository
from harbor_auth.adapter.repositories.session_repository import SessionRepository
from harbor_auth.app.services.unit_of_work import UnitOfWork


class SqlAlchemyUnitOfWork(UnitOfWork):
    """SQLAlchemy implementation of UnitOfWork pattern"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def __aenter__(self):
        self.sessions = SessionRepository(self.session)
        self.login_attempts = LoginAttemptRepository(self.session)
        self.audit_events = AuditEventRepository(self.session)
        return self

    async def __aexit__(self, exc_type, exc, tb):
        # Rows loaded in the block stay readable after it; rollback would
        # otherwise expire them. The next block reloads from the database.
        if exc_type is None:
            self.session.expunge_all()
        await self.rollback()

    async def commit(self):
        await self.session.commit()

    async def rollback(self):
        await self.session.rollback()
