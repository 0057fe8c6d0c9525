# tests/test_token_stores.py
"""
Refresh-token store and access-token blacklist against an in-memory MongoDB
(mongomock-motor).
"""

from datetime import timedelta

import pytest
from bson import ObjectId

from story_auth.models.token import (
    BlacklistReason,
    TokenStatus,
    is_valid,
    remaining_seconds,
)
from story_auth.repositories.refresh_tokens import RefreshTokenStore
from story_auth.repositories.token_blacklist import TokenBlacklist
from story_auth.utils.dates import utcnow


@pytest.fixture
def store(db):
    return RefreshTokenStore(db)


@pytest.fixture
def blacklist(db):
    return TokenBlacklist(db)


async def test_generate_persists_active_token(store):
    user_id = str(ObjectId())

    token = await store.generate(user_id, "pytest/1.0", "10.0.0.1", ttl_seconds=3600)

    assert len(token.token) == 80
    assert token.userId == user_id
    assert token.status == TokenStatus.ACTIVE
    assert is_valid(token)

    found = await store.find_by_token(token.token)
    assert found is not None
    assert found.userAgent == "pytest/1.0"
    assert found.ipAddress == "10.0.0.1"
    assert 3590 <= remaining_seconds(found.expiresAt) <= 3600


async def test_generate_gives_unique_tokens(store):
    user_id = str(ObjectId())
    tokens = {(await store.generate(user_id)).token for _ in range(5)}
    assert len(tokens) == 5


async def test_find_unknown_token_returns_none(store):
    assert await store.find_by_token("does-not-exist") is None


async def test_expired_token_is_not_valid(store):
    token = await store.generate(str(ObjectId()), ttl_seconds=-60)
    assert not is_valid(token)
    assert remaining_seconds(token.expiresAt) == 0


async def test_revoke_single_token(store):
    token = await store.generate(str(ObjectId()))

    assert await store.revoke(token.token) is True
    assert not is_valid(await store.find_by_token(token.token))
    assert await store.revoke("unknown") is False


async def test_revoke_all_for_user_only_touches_that_user(store):
    owner, other = str(ObjectId()), str(ObjectId())
    await store.generate(owner)
    await store.generate(owner)
    survivor = await store.generate(other)

    assert await store.revoke_all_for_user(owner) == 2

    owner_tokens = await store.find_all_for_user(owner)
    assert len(owner_tokens) == 2
    assert all(t.status == TokenStatus.REVOKED for t in owner_tokens)
    assert not any(is_valid(t) for t in owner_tokens)
    assert await store.find_active_for_user(owner) == []

    other_token = await store.find_by_token(survivor.token)
    assert other_token.status == TokenStatus.ACTIVE


async def test_delete_by_token_and_all_for_user(store):
    owner = str(ObjectId())
    first = await store.generate(owner)
    await store.generate(owner)

    assert await store.delete_by_token(first.token) is True
    assert await store.delete_by_token(first.token) is False
    assert await store.find_by_token(first.token) is None

    assert await store.delete_all_for_user(owner) == 1
    assert await store.find_all_for_user(owner) == []


async def test_cleanup_expired_refresh_tokens(store):
    owner = str(ObjectId())
    live = await store.generate(owner, ttl_seconds=3600)
    stale = await store.generate(owner, ttl_seconds=-3600)

    assert await store.cleanup_expired() == 1
    assert await store.find_by_token(stale.token) is None
    assert await store.find_by_token(live.token) is not None


async def test_blacklist_add_and_lookup(blacklist):
    expires_at = utcnow() + timedelta(hours=1)

    entry = await blacklist.add("header.payload.sig", expires_at, jti="abc123")

    assert entry is not None
    assert entry.reason == BlacklistReason.LOGOUT
    assert entry.jti == "abc123"
    assert await blacklist.is_blacklisted("header.payload.sig")
    assert not await blacklist.is_blacklisted("other.token.sig")


async def test_blacklist_duplicate_insert_is_noop(blacklist):
    expires_at = utcnow() + timedelta(hours=1)
    await blacklist.add("dup.token.sig", expires_at)

    assert await blacklist.add("dup.token.sig", expires_at) is None
    assert await blacklist.is_blacklisted("dup.token.sig")


async def test_blacklist_remove(blacklist):
    await blacklist.add("gone.token.sig", utcnow() + timedelta(hours=1))
    assert await blacklist.remove("gone.token.sig") is True
    assert not await blacklist.is_blacklisted("gone.token.sig")


async def test_blacklist_cleanup_expired(blacklist):
    await blacklist.add("old.token.sig", utcnow() - timedelta(minutes=1))
    await blacklist.add("new.token.sig", utcnow() + timedelta(hours=1), BlacklistReason.SECURITY_ISSUE)

    assert await blacklist.cleanup_expired() == 1
    assert not await blacklist.is_blacklisted("old.token.sig")
    assert await blacklist.is_blacklisted("new.token.sig")
