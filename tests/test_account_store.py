from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import inspect
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from storefront.core.exceptions import DuplicateEmail
from storefront.core.security import fast_hash, hash_password
from storefront.db.base import Base
from storefront.db.models.account import AccountRole
from storefront.services.account_store import SqlAccountStore


@pytest.fixture
async def sessionmaker(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'accounts.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False, autoflush=False)
    await engine.dispose()


@pytest.fixture
async def seeded(sessionmaker):
    async with sessionmaker() as db:
        account = await SqlAccountStore(db).create(
            username="alice",
            email="a@x.com",
            password_hash=hash_password("secret123"),
            role=AccountRole.USER,
        )
    return account


async def test_create_assigns_id_and_defaults(seeded):
    assert seeded.id is not None
    assert seeded.role == AccountRole.USER
    assert seeded.created_at is not None


async def test_password_hash_is_only_loaded_on_request(sessionmaker, seeded):
    async with sessionmaker() as db:
        account = await SqlAccountStore(db).find_by_email("a@x.com")
        assert "password_hash" in inspect(account).unloaded

    async with sessionmaker() as db:
        account = await SqlAccountStore(db).find_by_email("a@x.com", include_password=True)
        assert account.password_hash.startswith("$2")


async def test_find_by_id_with_password(sessionmaker, seeded):
    async with sessionmaker() as db:
        store = SqlAccountStore(db)
        account = await store.find_by_id(seeded.id)
        reloaded = await store.find_by_id(seeded.id, include_password=True)
        assert reloaded is account
        assert reloaded.password_hash is not None


async def test_duplicate_email_rejected(sessionmaker, seeded):
    async with sessionmaker() as db:
        with pytest.raises(DuplicateEmail):
            await SqlAccountStore(db).create(username="other", email="a@x.com", role=AccountRole.USER)


async def test_accounts_without_email_do_not_collide(sessionmaker):
    async with sessionmaker() as db:
        store = SqlAccountStore(db)
        await store.create(username="fb one", provider="facebook", provider_id="fb-1", role=AccountRole.USER)
        await store.create(username="fb two", provider="facebook", provider_id="fb-2", role=AccountRole.USER)
        found = await store.find_by_provider_id("facebook", "fb-2")
        assert found.username == "fb two"
        assert await store.find_by_provider_id("github", "fb-2") is None


async def test_find_by_reset_token_honours_expiry(sessionmaker, seeded):
    now = datetime.now(timezone.utc)
    async with sessionmaker() as db:
        store = SqlAccountStore(db)
        account = await store.find_by_id(seeded.id)
        account.set_password_reset(fast_hash("s3cret"), now + timedelta(minutes=10))
        await store.save(account)

    async with sessionmaker() as db:
        store = SqlAccountStore(db)
        assert (await store.find_by_reset_token(fast_hash("s3cret"), now)).id == seeded.id
        assert await store.find_by_reset_token(fast_hash("wrong"), now) is None
        assert await store.find_by_reset_token(fast_hash("s3cret"), now + timedelta(minutes=11)) is None


async def test_password_change_round_trips_through_storage(sessionmaker, seeded):
    async with sessionmaker() as db:
        store = SqlAccountStore(db)
        account = await store.find_by_id(seeded.id, include_password=True)
        account.set_password("brand-new-pass")
        await store.save(account)

    async with sessionmaker() as db:
        account = await SqlAccountStore(db).find_by_id(seeded.id)
        issued_before = datetime.now(timezone.utc) - timedelta(hours=1)
        assert account.changed_password_after(issued_before)
        assert not account.changed_password_after(datetime.now(timezone.utc))


async def test_save_conflict_is_not_reported_as_duplicate_signup(sessionmaker, seeded):
    async with sessionmaker() as db:
        store = SqlAccountStore(db)
        other = await store.create(username="bob", email="b@x.com", role=AccountRole.USER)
        other.email = "a@x.com"
        with pytest.raises(IntegrityError):
            await store.save(other)
