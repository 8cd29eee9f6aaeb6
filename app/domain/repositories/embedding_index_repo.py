# app/domain/repositories/embedding_index_repo.py
from __future__ import annotations
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, List, Tuple

from motor.motor_asyncio import AsyncIOMotorDatabase, AsyncIOMotorCollection
from pymongo import UpdateOne
from pymongo.errors import PyMongoError

from app.domain.errors import CollaboratorUnavailableError
from app.domain.services.embedding_svc import TextEmbedder


@contextmanager
def _index_errors():
    try:
        yield
    except PyMongoError as e:
        raise CollaboratorUnavailableError("embedding index", str(e)) from e


class EmbeddingIndexRepo:
    """
    MongoDB Atlas vector index over the 'product_embeddings' collection.

    One document per product:
      { product_id, text, vector, metadata, model, updated_at }

    Search runs $vectorSearch on `vector`. Ties in vectorSearchScore keep the
    index's natural order, which is not stable across calls.
    """

    VECTOR_PATH = "vector"

    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        embedder: TextEmbedder,
        collection_name: str = "product_embeddings",
        index_name: str = "vector_index",
    ):
        self.col: AsyncIOMotorCollection = db[collection_name]
        self.embedder = embedder
        self.index_name = index_name

    def _doc(self, text: str, vector: List[float], metadata: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "text": text,
            "vector": vector,
            "metadata": metadata,
            "model": self.embedder.model,
            "updated_at": datetime.now(timezone.utc),
        }

    async def upsert(self, product_id: str, text: str, metadata: Dict[str, Any]) -> None:
        vector = await self.embedder.embed(text)
        with _index_errors():
            await self.col.update_one(
                {"product_id": product_id},
                {"$set": self._doc(text, vector, metadata)},
                upsert=True,
            )

    async def upsert_many(self, records: List[Tuple[str, str, Dict[str, Any]]]) -> int:
        """Batch variant for re-sync: records are (product_id, text, metadata)."""
        if not records:
            return 0
        vectors = await self.embedder.embed_many([text for _, text, _ in records])
        ops = [
            UpdateOne({"product_id": pid}, {"$set": self._doc(text, vec, meta)}, upsert=True)
            for (pid, text, meta), vec in zip(records, vectors)
        ]
        with _index_errors():
            await self.col.bulk_write(ops, ordered=False)
        return len(ops)

    async def delete(self, product_id: str) -> None:
        with _index_errors():
            await self.col.delete_one({"product_id": product_id})

    async def search(self, query_text: str, top_k: int, threshold: float) -> List[Dict[str, Any]]:
        """
        Semantic search via $vectorSearch, keeping only hits with score >= threshold.
        Results are ordered by descending score.
        """
        query_vector = await self.embedder.embed(query_text)
        pipeline: List[Dict[str, Any]] = [
            {
                "$vectorSearch": {
                    "index": self.index_name,
                    "path": self.VECTOR_PATH,
                    "queryVector": query_vector,
                    "numCandidates": max(200, 10 * top_k),
                    "limit": top_k,
                }
            },
            {"$addFields": {"score": {"$meta": "vectorSearchScore"}}},
            {"$match": {"score": {"$gte": threshold}}},
            {
                "$project": {
                    "_id": 0,
                    "product_id": 1,
                    "score": 1,
                    "text": 1,
                    "metadata": 1,
                }
            },
        ]
        with _index_errors():
            cursor = self.col.aggregate(pipeline)
            return [doc async for doc in cursor]
