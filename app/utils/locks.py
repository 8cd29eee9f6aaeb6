# app/utils/locks.py
from __future__ import annotations
from typing import Optional
from redis.asyncio import Redis
import logging
import uuid

logger = logging.getLogger(__name__)


class RedisLock:
    """
    Single-instance job lock (SET NX EX) keeping one reindex run at a time
    across workers.

        async with RedisLock(redis, "products:reindex", ttl=600) as acquired:
            if not acquired:
                ...  # someone else holds it

    The TTL bounds how long a crashed worker can block others.
    """

    def __init__(self, redis: Redis, name: str, ttl: int = 600):
        self.redis = redis
        self.key = f"lock:{name}"
        self.ttl = ttl
        self._token: Optional[str] = None

    @property
    def held(self) -> bool:
        return self._token is not None

    async def acquire(self) -> bool:
        token = uuid.uuid4().hex
        if await self.redis.set(self.key, token, nx=True, ex=self.ttl):
            self._token = token
            logger.debug(f"Lock acquired key={self.key} ttl={self.ttl}s")
            return True
        logger.info(f"Lock busy key={self.key}")
        return False

    async def release(self) -> None:
        if not self.held:
            return
        # the key may have expired and been taken by another worker
        if await self.redis.get(self.key) == self._token:
            await self.redis.delete(self.key)
        self._token = None

    async def __aenter__(self) -> bool:
        return await self.acquire()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.release()
