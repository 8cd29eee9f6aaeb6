# app/domain/repositories/vector_cache_repo.py
from __future__ import annotations
from typing import Optional, Sequence
from redis.asyncio import Redis
import json, hashlib


def _digest(value: str, size: int) -> str:
    return hashlib.sha1(value.encode("utf-8")).hexdigest()[:size]


class VectorCacheRepo:
    """
    Redis cache of query text -> embedding vector, namespaced by model.

    Only the text-to-vector conversion is cached; similarity results are not,
    so every search still reads the live index. Raises redis errors as-is:
    callers decide whether the cache is optional.
    """

    def __init__(self, redis: Redis, prefix: str = "qvec"):
        self.redis = redis
        self.prefix = prefix

    def key(self, text: str, model: str) -> str:
        # model part changes when the embedding model does, orphaning old vectors
        return f"{self.prefix}:{_digest(model, 8)}:{_digest(text, 20)}"

    async def get_vector(self, text: str, model: str) -> Optional[list[float]]:
        raw = await self.redis.get(self.key(text, model))
        return json.loads(raw) if raw else None

    async def put_vector(self, text: str, model: str, vector: Sequence[float], ttl: int) -> None:
        payload = json.dumps(list(vector), separators=(",", ":"))
        await self.redis.set(self.key(text, model), payload, ex=ttl)
