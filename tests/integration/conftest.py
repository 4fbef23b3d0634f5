from contextlib import asynccontextmanager
from dataclasses import replace

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from harbor_auth.adapter.services.local_identity_provider import LocalIdentityProvider
from harbor_auth.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from harbor_auth.app.services.audit_logger import AuditLogger
from harbor_auth.app.services.login_attempt_tracker import LoginAttemptTracker
from harbor_auth.app.services.security_settings import SecuritySettings
from harbor_auth.app.services.session_manager import SessionManager
from harbor_auth.app.services.token_issuer import TokenIssuer
from harbor_auth.depends import (
    get_audit_uow_factory,
    get_clock,
    get_identity_provider,
    get_settings,
    get_unit_of_work,
)
from tests.fixtures.clock import FakeClock
from tests.fixtures.json_loader import TestDataLoader


@pytest_asyncio.fixture
def test_data():
    return TestDataLoader()


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine("sqlite+aiosqlite:///./test.db")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
def audit_uow_factory(session_factory):
    @asynccontextmanager
    async def open_audit_uow():
        async with session_factory() as session:
            async with SqlAlchemyUnitOfWork(session) as uow:
                yield uow

    return open_audit_uow


@pytest_asyncio.fixture
def clock():
    return FakeClock()


@pytest_asyncio.fixture
def settings():
    return SecuritySettings()


@pytest_asyncio.fixture
def uow(db_session):
    return SqlAlchemyUnitOfWork(db_session)


@pytest_asyncio.fixture
def issuer(clock):
    return TokenIssuer(
        ApplicationConfig.JWT_SECRET,
        ApplicationConfig.JWT_ISSUER,
        ApplicationConfig.JWT_AUDIENCE,
        clock=clock,
    )


@pytest_asyncio.fixture
def audit_logger(audit_uow_factory, settings, clock):
    return AuditLogger.from_settings(audit_uow_factory, settings, clock=clock)


@pytest_asyncio.fixture
def make_session_manager(uow, issuer, audit_logger, clock):
    """Session manager over the test database with adjusted settings"""

    def factory(settings=None, **overrides):
        settings = replace(settings or SecuritySettings(), **overrides)
        return SessionManager(uow, settings, issuer, audit_logger, clock=clock)

    return factory


@pytest_asyncio.fixture
def session_manager(make_session_manager, settings):
    return make_session_manager(settings)


@pytest_asyncio.fixture
def tracker(uow, settings, clock):
    return LoginAttemptTracker(uow, settings, clock=clock)


@pytest_asyncio.fixture
async def client(db_session, audit_uow_factory, clock):
    from harbor_auth.api.app import create_app

    app = create_app(ApplicationConfig)

    async def override_get_unit_of_work():
        yield SqlAlchemyUnitOfWork(db_session)

    def override_get_identity_provider():
        return LocalIdentityProvider(
            TestDataLoader.local_users(),
            ApplicationConfig.IDP_LOCAL_SECRET,
            ApplicationConfig.IDP_ISSUER,
            ApplicationConfig.IDP_CLIENT_ID,
            clock=clock,
        )

    app.dependency_overrides[get_unit_of_work] = override_get_unit_of_work
    app.dependency_overrides[get_audit_uow_factory] = lambda: audit_uow_factory
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_settings] = lambda: SecuritySettings()
    app.dependency_overrides[get_identity_provider] = override_get_identity_provider

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
def audit_trail(audit_uow_factory):
    """Persisted audit events, newest first"""

    async def fetch(actor_id=None, limit=100):
        async with audit_uow_factory() as audit_uow:
            events, _ = await audit_uow.audit_events.get_by_actor_paginated(actor_id, limit=limit)
        return events

    return fetch


@pytest_asyncio.fixture
def login_as(client):
    """Log a test user in and return the response body"""

    async def login(name, fingerprint=None, **headers):
        user = TestDataLoader.user(name)
        device = TestDataLoader.get_copy("device")
        headers.setdefault("X-Device-Fingerprint", fingerprint or device["fingerprint"])
        headers.setdefault("User-Agent", device["user_agent"])
        response = await client.post(
            "/auth/login",
            json={"email": user["email"], "password": user["password"]},
            headers=headers,
        )
        assert response.status_code == 200, response.text
        return response.json()

    return login