from datetime import datetime, timedelta, timezone

import pytest

from storefront.core.exceptions import InvalidOrExpiredToken
from storefront.core.security import fast_hash
from storefront.services.reset_tokens import ResetTokenService


@pytest.fixture
def resets(store):
    return ResetTokenService(store, expire_minutes=10)


@pytest.fixture
async def account(store):
    return await store.create(username="alice", email="a@x.com")


async def test_issue_stores_only_the_hash(resets, account):
    secret = await resets.issue(account)
    assert len(secret) == 64
    assert account.password_reset_token == fast_hash(secret)
    assert account.password_reset_token != secret
    expires_in = account.password_reset_expires - datetime.now(timezone.utc)
    assert timedelta(minutes=9) < expires_in <= timedelta(minutes=10)


async def test_issue_persists_immediately(resets, account, store):
    store.calls.clear()
    await resets.issue(account)
    assert store.calls == ["save"]


async def test_consume_returns_owner(resets, account):
    secret = await resets.issue(account)
    assert await resets.consume(secret) is account


async def test_consume_wrong_secret_fails(resets, account):
    await resets.issue(account)
    with pytest.raises(InvalidOrExpiredToken):
        await resets.consume("0" * 64)


async def test_consume_expired_secret_fails_even_when_correct(resets, account):
    secret = await resets.issue(account)
    account.password_reset_expires = datetime.now(timezone.utc) - timedelta(seconds=1)
    with pytest.raises(InvalidOrExpiredToken):
        await resets.consume(secret)


async def test_reissue_replaces_previous_secret(resets, account):
    first = await resets.issue(account)
    second = await resets.issue(account)
    with pytest.raises(InvalidOrExpiredToken):
        await resets.consume(first)
    assert await resets.consume(second) is account


async def test_revoke_clears_both_fields(resets, account):
    secret = await resets.issue(account)
    await resets.revoke(account)
    assert account.password_reset_token is None
    assert account.password_reset_expires is None
    assert not account.has_pending_reset
    with pytest.raises(InvalidOrExpiredToken):
        await resets.consume(secret)
