# app/api/v1/routers/recommendations.py
from fastapi import APIRouter, Depends, Query
from typing import Optional
import time
import logging

from app.api.deps import recommendation_engine
from app.api.v1.schemas.reco import RecommendationRequest
from app.domain.models.recommendation import RecommendationQuery
from app.domain.services.recommendation_svc import RecommendationEngine
from app.domain.services.constants import (
    INTENT_SIMILAR, INTENT_SEARCH, INTENT_PERSONALIZED, INTENT_HISTORY, INTENT_COMPLEMENTARY,
    INTENT_TRENDING, INTENT_DIVERSE, INTENT_BUDGET, INTENT_PREMIUM, INTENT_CATEGORY,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/recommendations", tags=["recommendations"])


async def _run(engine: RecommendationEngine, query: RecommendationQuery, hydrate: bool) -> dict:
    """
    Run one engine operation; optionally replace the lightweight items with
    full catalog records.
    """
    logger.info("Request: recommend intent=%s product_id=%s limit=%s", query.intent, query.product_id, query.limit)
    start_time = time.perf_counter()

    res = await engine.recommend(query)
    body = res.model_dump()
    if hydrate:
        products = await engine.hydrate(res.items)
        body["items"] = [p.model_dump(mode="json") for p in products]
        body["count"] = len(products)

    logger.info(
        "Response: recommend intent=%s count=%s elapsed_time=%.4fs",
        query.intent, body["count"], time.perf_counter() - start_time,
    )
    return body


@router.get("/similar/{product_id}")
async def similar_products(
    product_id: str,
    limit: int = Query(10),
    hydrate: bool = Query(False, description="Return full product records"),
    engine: RecommendationEngine = Depends(recommendation_engine),
):
    """Substitutable products for a reference product (reference excluded)."""
    return await _run(engine, RecommendationQuery(intent=INTENT_SIMILAR, product_id=product_id, limit=limit), hydrate)


@router.get("/search")
async def search_products(
    query: str,
    limit: int = Query(10),
    hydrate: bool = Query(False),
    engine: RecommendationEngine = Depends(recommendation_engine),
):
    return await _run(engine, RecommendationQuery(intent=INTENT_SEARCH, query=query, limit=limit), hydrate)


@router.post("/personalized")
async def personalized_products(
    request: RecommendationRequest,
    hydrate: bool = Query(False),
    engine: RecommendationEngine = Depends(recommendation_engine),
):
    q = RecommendationQuery(intent=INTENT_PERSONALIZED, query=request.user_preferences, limit=request.limit)
    return await _run(engine, q, hydrate)


@router.post("/from-history")
async def history_products(
    request: RecommendationRequest,
    hydrate: bool = Query(False),
    engine: RecommendationEngine = Depends(recommendation_engine),
):
    """Products similar to the most recently viewed ones, never one already viewed."""
    q = RecommendationQuery(intent=INTENT_HISTORY, viewed_ids=request.viewed_product_ids, limit=request.limit)
    return await _run(engine, q, hydrate)


@router.get("/complementary/{product_id}")
async def complementary_products(
    product_id: str,
    limit: int = Query(10),
    hydrate: bool = Query(False),
    engine: RecommendationEngine = Depends(recommendation_engine),
):
    q = RecommendationQuery(intent=INTENT_COMPLEMENTARY, product_id=product_id, limit=limit)
    return await _run(engine, q, hydrate)


@router.get("/trending")
async def trending_products(
    limit: int = Query(10),
    hydrate: bool = Query(False),
    engine: RecommendationEngine = Depends(recommendation_engine),
):
    return await _run(engine, RecommendationQuery(intent=INTENT_TRENDING, limit=limit), hydrate)


@router.get("/diverse")
async def diverse_products(
    user_interests: Optional[str] = None,
    limit: int = Query(10),
    hydrate: bool = Query(False),
    engine: RecommendationEngine = Depends(recommendation_engine),
):
    """Round-robin across categories so no single category dominates."""
    q = RecommendationQuery(intent=INTENT_DIVERSE, query=user_interests, limit=limit)
    return await _run(engine, q, hydrate)


@router.get("/budget-alternatives/{product_id}")
async def budget_alternatives(
    product_id: str,
    limit: int = Query(5),
    hydrate: bool = Query(False),
    engine: RecommendationEngine = Depends(recommendation_engine),
):
    q = RecommendationQuery(intent=INTENT_BUDGET, product_id=product_id, limit=limit)
    return await _run(engine, q, hydrate)


@router.get("/premium-alternatives/{product_id}")
async def premium_alternatives(
    product_id: str,
    limit: int = Query(5),
    hydrate: bool = Query(False),
    engine: RecommendationEngine = Depends(recommendation_engine),
):
    q = RecommendationQuery(intent=INTENT_PREMIUM, product_id=product_id, limit=limit)
    return await _run(engine, q, hydrate)


@router.get("/category/{category}")
async def category_products(
    category: str,
    user_context: Optional[str] = None,
    limit: int = Query(10),
    hydrate: bool = Query(False),
    engine: RecommendationEngine = Depends(recommendation_engine),
):
    q = RecommendationQuery(intent=INTENT_CATEGORY, category=category, user_context=user_context, limit=limit)
    return await _run(engine, q, hydrate)
