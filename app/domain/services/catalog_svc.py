# app/domain/services/catalog_svc.py
from __future__ import annotations
from typing import List, Optional, Dict, Any
import logging
import time

from app.domain.errors import NotFoundError, ValidationFailureError, CollaboratorUnavailableError
from app.domain.models.product import (
    Category, CatalogFilter, Product, ProductIn, ProductPage, SyncOutcome,
)
from app.domain.services.vector_index_svc import EmbeddingIndexClient

logger = logging.getLogger(__name__)


class CatalogService:
    """
    Catalog accessor and writer.

    Reads: lookup by id (ignores the active flag) and active-only listings with
    a server-side page size ceiling. Callers must not assume the requested page
    size is honored verbatim.

    Writes: durable catalog write first, then an advisory embedding-index write
    whose SyncOutcome is only logged. The index may lag; `resync_index` is the
    recovery path.
    """

    def __init__(
        self,
        repo,
        index: EmbeddingIndexClient,
        *,
        default_page_size: int = 10,
        max_page_size: int = 100,
    ):
        self.repo = repo
        self.index = index
        self.default_page_size = default_page_size
        self.max_page_size = max_page_size

    # ---------- Reads --------------------------------------------------------

    async def get_by_id(self, product_id: str) -> Product:
        logger.debug(f"Getting product by id: {product_id}")
        product = await self.repo.get_by_product_id(product_id)
        if product is None:
            raise NotFoundError(product_id)
        return product

    async def get_many(self, product_ids: List[str]) -> List[Product]:
        """Products for the given ids in request order; unknown ids are skipped."""
        if not product_ids:
            return []
        return await self.repo.get_many_by_product_ids(list(dict.fromkeys(product_ids)))

    def clamp_page_size(self, page_size: Optional[int]) -> int:
        if page_size is None:
            return self.default_page_size
        if page_size < 1:
            raise ValidationFailureError(f"page_size must be >= 1, got {page_size}")
        return min(page_size, self.max_page_size)

    async def list_active(
        self,
        filt: Optional[CatalogFilter] = None,
        page: int = 0,
        page_size: Optional[int] = None,
    ) -> ProductPage:
        if page < 0:
            raise ValidationFailureError(f"page must be >= 0, got {page}")
        size = self.clamp_page_size(page_size)
        filt = filt or CatalogFilter()
        logger.debug(f"Listing products filter={filt.kind} page={page} size={size}")
        items, total = await self.repo.find_active(filt, skip=page * size, limit=size)
        return ProductPage(items=items, page=page, page_size=size, total=total)

    async def top_rated(self, page: int = 0, page_size: Optional[int] = None) -> ProductPage:
        return await self.list_active(CatalogFilter.top_rated(), page, page_size)

    async def count_by_category(self, category: Category) -> int:
        return await self.repo.count_by_category(category)

    async def distinct_brands(self) -> List[str]:
        return await self.repo.distinct_brands()

    async def distinct_tags(self) -> List[str]:
        return await self.repo.distinct_tags()

    # ---------- Writes (catalog first, index best effort) --------------------

    async def create(self, data: ProductIn) -> Product:
        logger.debug(f"Creating new product: {data.name}")
        product = await self.repo.insert(data)
        self._log_sync("upsert", product.product_id, await self.index.upsert_product(product))
        logger.info(f"Product created with id: {product.product_id}")
        return product

    async def update(self, product_id: str, data: ProductIn) -> Product:
        logger.debug(f"Updating product: {product_id}")
        product = await self.repo.update(product_id, data)
        if product is None:
            raise NotFoundError(product_id)
        if product.active:
            self._log_sync("upsert", product_id, await self.index.upsert_product(product))
        logger.info(f"Product updated: {product_id}")
        return product

    async def soft_delete(self, product_id: str) -> None:
        logger.debug(f"Deleting product: {product_id}")
        if not await self.repo.set_active(product_id, False):
            raise NotFoundError(product_id)
        self._log_sync("remove", product_id, await self.index.remove_product(product_id))
        logger.info(f"Product deleted: {product_id}")

    @staticmethod
    def _log_sync(op: str, product_id: str, outcome: SyncOutcome) -> SyncOutcome:
        if outcome.ok:
            logger.debug(f"Embedding index {op} ok for product_id={product_id}")
        else:
            logger.error(f"Embedding index {op} failed for product_id={product_id}: {outcome.reason}")
        return outcome

    # ---------- Recovery -----------------------------------------------------

    async def resync_index(self, batch_size: int = 64) -> Dict[str, Any]:
        """
        Re-embed every active product into the index, in batches, then drop
        index entries of soft-deleted products whose removal failed earlier.
        A failed batch or removal is recorded and the scan continues.
        """
        t0 = time.perf_counter()
        seen = 0
        synced = 0
        removed = 0
        errors: List[str] = []
        batch: List[Product] = []

        async def flush():
            nonlocal synced
            try:
                synced += await self.index.upsert_products(batch)
            except CollaboratorUnavailableError as e:
                err = f"batch_error size={len(batch)}: {e.reason}"
                errors.append(err)
                logger.error(f"[resync] {err}")
            batch.clear()

        logger.info(f"[resync] start batch_size={batch_size}")
        async for product in self.repo.iter_active():
            batch.append(product)
            seen += 1
            if len(batch) >= batch_size:
                await flush()
        if batch:
            await flush()

        async for product_id in self.repo.iter_inactive_ids():
            outcome = await self.index.remove_product(product_id)
            if outcome.ok:
                removed += 1
            else:
                err = f"remove_error product_id={product_id}: {outcome.reason}"
                errors.append(err)
                logger.error(f"[resync] {err}")

        elapsed_ms = (time.perf_counter() - t0) * 1000.0
        logger.info(
            f"[resync] done seen={seen} synced={synced} removed={removed} "
            f"errors={len(errors)} time_ms={elapsed_ms:.1f}"
        )
        return {"seen": seen, "synced": synced, "removed": removed, "errors": errors, "processing_time_ms": elapsed_ms}
