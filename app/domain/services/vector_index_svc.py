# app/domain/services/vector_index_svc.py
from __future__ import annotations
from typing import Any, Dict, List, Iterable
import logging
import time

from app.domain.errors import CollaboratorUnavailableError, ValidationFailureError
from app.domain.models.product import Product, SearchHit, SyncOutcome
from app.domain.services.query_builders import product_to_embedding_text

logger = logging.getLogger(__name__)


def product_metadata(product: Product) -> Dict[str, Any]:
    """Denormalized copy stored next to the vector so hits are self-describing."""
    return {
        "product_id": product.product_id,
        "name": product.name,
        "category": product.category.value,
        "price": product.price,
        "rating": product.rating,
        "brand": product.brand or "",
        "sku": product.sku or "",
    }


class EmbeddingIndexClient:
    """
    Client for the embedding index.

    - upsert/remove raise CollaboratorUnavailableError on store failure.
    - upsert_product/remove_product never raise: they return a SyncOutcome
      for callers that sync the index as a side effect of a catalog write.
    - search returns at most top_k hits with score >= threshold, best first.
      Equal scores keep the store's order, which is unstable.
    """

    def __init__(self, store):
        self.store = store

    async def upsert(self, product_id: str, embedding_text: str, metadata: Dict[str, Any]) -> None:
        logger.debug(f"Upserting embedding for product_id={product_id}")
        await self.store.upsert(product_id, embedding_text, metadata)

    async def remove(self, product_id: str) -> None:
        logger.debug(f"Removing embedding for product_id={product_id}")
        await self.store.delete(product_id)

    async def search(self, query_text: str, top_k: int, similarity_threshold: float) -> List[SearchHit]:
        if not query_text or not query_text.strip():
            raise ValidationFailureError("search query must not be blank")
        if top_k < 1:
            raise ValidationFailureError(f"top_k must be >= 1, got {top_k}")

        t0 = time.perf_counter()
        raw = await self.store.search(query_text, top_k, similarity_threshold)
        hits = [
            SearchHit(
                product_id=str(r["product_id"]),
                score=float(r.get("score", 0.0)),
                content=r.get("text") or "",
                metadata=r.get("metadata") or {},
            )
            for r in raw
        ]
        hits = [h for h in hits if h.score >= similarity_threshold]
        hits.sort(key=lambda h: h.score, reverse=True)  # stable: ties keep store order
        hits = hits[:top_k]
        logger.info(
            f"Semantic search returned {len(hits)} results top_k={top_k} "
            f"threshold={similarity_threshold} time={time.perf_counter() - t0:.3f}s"
        )
        return hits

    # ---------- Best-effort sync --------------------------------------------

    async def upsert_product(self, product: Product) -> SyncOutcome:
        try:
            await self.upsert(product.product_id, product_to_embedding_text(product), product_metadata(product))
        except CollaboratorUnavailableError as e:
            return SyncOutcome.failed(e.reason)
        return SyncOutcome.success()

    async def remove_product(self, product_id: str) -> SyncOutcome:
        try:
            await self.remove(product_id)
        except CollaboratorUnavailableError as e:
            return SyncOutcome.failed(e.reason)
        return SyncOutcome.success()

    async def upsert_products(self, products: Iterable[Product]) -> int:
        records = [(p.product_id, product_to_embedding_text(p), product_metadata(p)) for p in products]
        return await self.store.upsert_many(records)

    async def is_healthy(self) -> bool:
        try:
            await self.store.search("test", 1, 0.0)
            return True
        except CollaboratorUnavailableError as e:
            logger.error(f"Embedding index health check failed: {e}")
            return False
