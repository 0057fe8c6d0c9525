# tests/test_token_cleanup.py
from datetime import timedelta

import pytest
from bson import ObjectId

from story_auth.repositories.refresh_tokens import RefreshTokenStore
from story_auth.repositories.token_blacklist import TokenBlacklist
from story_auth.services.token_cleanup import TokenCleanupService
from story_auth.utils.dates import utcnow


@pytest.fixture
def cleanup(db):
    return TokenCleanupService(RefreshTokenStore(db), TokenBlacklist(db), cleanup_interval_hours=1)


async def test_run_once_removes_only_expired(cleanup):
    user_id = str(ObjectId())
    await cleanup.refresh_tokens.generate(user_id, ttl_seconds=-10)
    await cleanup.refresh_tokens.generate(user_id, ttl_seconds=-10)
    live = await cleanup.refresh_tokens.generate(user_id, ttl_seconds=600)
    await cleanup.blacklist.add("expired.jwt.sig", utcnow() - timedelta(seconds=5))
    await cleanup.blacklist.add("current.jwt.sig", utcnow() + timedelta(minutes=5))

    removed = await cleanup.run_once()

    assert removed == {"refresh_tokens": 2, "blacklisted_tokens": 1}
    assert await cleanup.refresh_tokens.find_by_token(live.token) is not None
    assert await cleanup.blacklist.is_blacklisted("current.jwt.sig")


async def test_run_once_on_empty_stores(cleanup):
    assert await cleanup.run_once() == {"refresh_tokens": 0, "blacklisted_tokens": 0}


async def test_start_and_stop(cleanup):
    await cleanup.start()
    assert cleanup.is_running
    assert cleanup.task is not None

    # a second start is a no-op
    task = cleanup.task
    await cleanup.start()
    assert cleanup.task is task

    await cleanup.stop()
    assert not cleanup.is_running
    assert cleanup.task is None
