# app/api/v1/routers/products.py

from fastapi import APIRouter, Depends, Query, HTTPException, Response
from pydantic import ValidationError
from typing import List, Optional

from app.api.deps import catalog_service, rag_service, redis_dep
from app.api.v1.schemas.reco import DescriptionRequest, QueryResponse, ReindexResult
from app.core.config import get_settings
from app.domain.models.product import Category, CatalogFilter, Product, ProductIn, ProductPage
from app.domain.services.catalog_svc import CatalogService
from app.domain.services.rag_svc import RagService
from app.utils.locks import RedisLock

import logging
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/products", tags=["products"])

REINDEX_LOCK_KEY = "products:reindex"


def _parse_category(value: str) -> Category:
    category = Category.lookup(value)
    if category is None:
        raise HTTPException(status_code=400, detail=f"Unknown category: {value}")
    return category


def _listing_filter(
    category: Optional[str],
    min_price: Optional[float],
    max_price: Optional[float],
    keyword: Optional[str],
    top_rated: bool,
) -> CatalogFilter:
    """One filter strategy per listing; combining strategies is a client error."""
    chosen = [
        name for name, on in (
            ("category", category is not None),
            ("price_range", min_price is not None or max_price is not None),
            ("keyword", keyword is not None),
            ("top_rated", top_rated),
        ) if on
    ]
    if len(chosen) > 1:
        raise HTTPException(status_code=400, detail=f"Use a single filter, got: {', '.join(chosen)}")
    try:
        if category is not None:
            return CatalogFilter.by_category(_parse_category(category))
        if chosen == ["price_range"]:
            return CatalogFilter.by_price_range(
                min_price if min_price is not None else 0.0,
                max_price if max_price is not None else float("inf"),
            )
        if keyword is not None:
            return CatalogFilter.by_keyword(keyword)
        if top_rated:
            return CatalogFilter.top_rated()
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.errors()[0]["msg"])
    return CatalogFilter()


@router.get("", response_model=ProductPage, summary="List active products (paged, one optional filter)")
async def list_products(
    page: int = Query(0, description="Zero-based page index"),
    size: Optional[int] = Query(None, description="Page size (clamped to the server maximum)"),
    category: Optional[str] = None,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
    keyword: Optional[str] = None,
    top_rated: bool = False,
    catalog: CatalogService = Depends(catalog_service),
):
    filt = _listing_filter(category, min_price, max_price, keyword, top_rated)
    return await catalog.list_active(filt, page=page, page_size=size)


@router.get("/brands", response_model=List[str])
async def list_brands(catalog: CatalogService = Depends(catalog_service)):
    return await catalog.distinct_brands()


@router.get("/tags", response_model=List[str])
async def list_tags(catalog: CatalogService = Depends(catalog_service)):
    return await catalog.distinct_tags()


@router.get("/categories/{category}/count")
async def count_category(category: str, catalog: CatalogService = Depends(catalog_service)):
    cat = _parse_category(category)
    return {
        "category": cat.value,
        "display_name": cat.display_name,
        "description": cat.description,
        "count": await catalog.count_by_category(cat),
    }


@router.post("/reindex", response_model=ReindexResult, summary="Re-embed every active product into the index")
async def reindex_products(
    batch_size: Optional[int] = Query(None, ge=1, le=2048, description="Products per embedding batch"),
    catalog: CatalogService = Depends(catalog_service),
    redis = Depends(redis_dep),
):
    """
    Recovery path for index writes that failed after a catalog write.
    Guarded by a Redis lock when Redis is configured.
    """
    settings = get_settings()
    batch_size = batch_size or settings.resync_batch_size
    if redis is None:
        logger.warning("[reindex] Redis not configured, running without lock")
        return await catalog.resync_index(batch_size=batch_size)

    async with RedisLock(redis, REINDEX_LOCK_KEY, ttl=settings.resync_lock_ttl) as acquired:
        if not acquired:
            raise HTTPException(status_code=409, detail="Reindex already running")
        return await catalog.resync_index(batch_size=batch_size)


@router.get("/{product_id}", response_model=Product)
async def get_product(product_id: str, catalog: CatalogService = Depends(catalog_service)):
    return await catalog.get_by_id(product_id)


@router.post("", response_model=Product, status_code=201)
async def create_product(data: ProductIn, catalog: CatalogService = Depends(catalog_service)):
    logger.info(f"Request: create product name={data.name!r}")
    return await catalog.create(data)


@router.put("/{product_id}", response_model=Product)
async def update_product(product_id: str, data: ProductIn, catalog: CatalogService = Depends(catalog_service)):
    logger.info(f"Request: update product_id={product_id}")
    return await catalog.update(product_id, data)


@router.delete("/{product_id}", status_code=204)
async def delete_product(product_id: str, catalog: CatalogService = Depends(catalog_service)):
    logger.info(f"Request: delete product_id={product_id}")
    await catalog.soft_delete(product_id)
    return Response(status_code=204)


@router.post("/{product_id}/personalized-description", response_model=QueryResponse)
async def personalized_description(
    product_id: str,
    request: Optional[DescriptionRequest] = None,
    rag: RagService = Depends(rag_service),
):
    prefs = request.user_preferences if request else None
    res = await rag.personalized_description(product_id, prefs)
    return QueryResponse(query=f"Personalized description for {product_id}", **res.model_dump())
