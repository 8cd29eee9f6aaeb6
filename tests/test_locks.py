from __future__ import annotations

import asyncio

from app.utils.locks import RedisLock
from fakes import LockRedis


def test_second_acquire_is_refused_until_release():
    redis = LockRedis()
    first, second = RedisLock(redis, "job"), RedisLock(redis, "job")

    async def scenario():
        assert await first.acquire() is True
        assert await second.acquire() is False
        await first.release()
        assert await second.acquire() is True

    asyncio.run(scenario())
    assert "lock:job" in redis.data


def test_release_keeps_a_lock_taken_over_by_someone_else():
    redis = LockRedis()
    lock = RedisLock(redis, "job")

    async def scenario():
        await lock.acquire()
        redis.data["lock:job"] = "other-worker"  # expired and re-taken
        await lock.release()

    asyncio.run(scenario())
    assert redis.data["lock:job"] == "other-worker"
    assert lock.held is False


def test_context_manager_releases_on_exit():
    redis = LockRedis()

    async def scenario():
        async with RedisLock(redis, "job") as acquired:
            assert acquired
            assert "lock:job" in redis.data
        assert "lock:job" not in redis.data

    asyncio.run(scenario())
