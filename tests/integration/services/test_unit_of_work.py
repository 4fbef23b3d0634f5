from datetime import timedelta

import pytest
import pytest_asyncio

from harbor_auth.domain.entities import Session


@pytest_asyncio.fixture
def stored_session(clock):
    return Session(
        subject_id="sub-customer-1",
        email="sub-customer-1@example.com",
        refresh_token_hash="0" * 64,
        created_at=clock(),
        last_activity=clock(),
        expires_at=clock() + timedelta(hours=24),
    )


@pytest.mark.asyncio
async def test_loaded_rows_readable_after_block(uow, stored_session, clock):
    async with uow:
        await uow.sessions.create(stored_session)
        await uow.commit()

    async with uow:
        loaded = await uow.sessions.get_by_id(stored_session.id)
        live = await uow.sessions.list_live_by_subject("sub-customer-1", clock())

    assert loaded.subject_id == "sub-customer-1"
    assert loaded.is_live(clock())
    assert [s.id for s in live] == [stored_session.id]


@pytest.mark.asyncio
async def test_uncommitted_changes_are_discarded(uow, stored_session, clock):
    async with uow:
        await uow.sessions.create(stored_session)
        await uow.commit()

    async with uow:
        await uow.sessions.revoke_by_id(stored_session.id, "logout", clock())

    async with uow:
        reloaded = await uow.sessions.get_by_id(stored_session.id)
    assert reloaded.revoked is False
    assert reloaded.revoked_reason is None

