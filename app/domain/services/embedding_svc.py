# app/domain/services/embedding_svc.py

from __future__ import annotations
from typing import Optional, List
import logging
import time

from openai import AsyncOpenAI, OpenAIError
from redis.exceptions import RedisError

from app.domain.errors import CollaboratorUnavailableError
from app.domain.repositories.vector_cache_repo import VectorCacheRepo

logger = logging.getLogger(__name__)


class TextEmbedder:
    """
    Turns texts into vectors with the OpenAI embeddings API.

    Single texts (search queries) go through the optional Redis cache:
      1) Try Redis
      2) Else call OpenAI
      3) Cache the vector (best effort)
    Batches (index writes) always hit OpenAI.
    """

    def __init__(
        self,
        client: AsyncOpenAI,
        model: str,
        cache: Optional[VectorCacheRepo] = None,
        cache_ttl: int = 24 * 3600,
    ):
        self.client = client
        self.model = model
        self.cache = cache
        self.cache_ttl = cache_ttl

    async def embed(self, text: str) -> List[float]:
        if self.cache:
            try:
                if vec := await self.cache.get_vector(text, self.model):
                    logger.debug(f"Embedding cache hit for key: {self.cache.key(text, self.model)}")
                    return vec
            except RedisError as e:
                logger.warning(f"Embedding cache read failed (ignored): {e}")

        vec = (await self._create([text]))[0]

        if self.cache:
            try:
                await self.cache.put_vector(text, self.model, vec, ttl=self.cache_ttl)
            except RedisError as e:
                logger.warning(f"Embedding cache write failed (ignored): {e}")
        return vec

    async def embed_many(self, texts: List[str]) -> List[List[float]]:
        if not texts:
            return []
        vectors = await self._create(texts)
        if len(vectors) != len(texts):
            raise CollaboratorUnavailableError(
                "embedding model", f"batch_mismatch expected={len(texts)} got={len(vectors)}"
            )
        return vectors

    async def _create(self, texts: List[str]) -> List[List[float]]:
        t0 = time.perf_counter()
        try:
            resp = await self.client.embeddings.create(model=self.model, input=texts)
        except OpenAIError as e:
            logger.error(f"OpenAI embeddings call failed size={len(texts)}: {e}")
            raise CollaboratorUnavailableError("embedding model", str(e)) from e
        logger.debug(f"OpenAI embeddings model={self.model} size={len(texts)} duration={time.perf_counter() - t0:.3f}s")
        return [item.embedding for item in resp.data]
