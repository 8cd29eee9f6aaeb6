import logging
from typing import List, Optional

from pydantic import BaseModel, Field

from app.domain.errors import NotFoundError, ValidationFailureError
from app.domain.models.product import Product
from app.domain.models.recommendation import RecoItem, RecoResult, RecommendationQuery
from app.domain.services import filters
from app.domain.services.catalog_svc import CatalogService
from app.domain.services.constants import (
    SELF_HEADROOM, HISTORY_SEED_LIMIT, HISTORY_PER_SEED, DIVERSITY_OVERFETCH, ALTERNATIVES_HEADROOM,
    INTENT_SIMILAR, INTENT_SEARCH, INTENT_PERSONALIZED, INTENT_HISTORY, INTENT_COMPLEMENTARY,
    INTENT_TRENDING, INTENT_DIVERSE, INTENT_BUDGET, INTENT_PREMIUM, INTENT_CATEGORY,
)
from app.domain.services.query_builders import (
    product_to_embedding_text, enrich_preferences, complementary_query,
    category_context_query, diverse_interests,
)
from app.domain.services.vector_index_svc import EmbeddingIndexClient

logger = logging.getLogger(__name__)


class RankingConfig(BaseModel):
    """Engine-wide knobs, injected once at construction."""
    similarity_threshold: float = Field(default=0.7, ge=0.0, le=1.0)
    max_results: int = Field(default=20, ge=1)
    history_seed_limit: int = Field(default=HISTORY_SEED_LIMIT, ge=1)
    history_per_seed: int = Field(default=HISTORY_PER_SEED, ge=1)
    diversity_overfetch: int = Field(default=DIVERSITY_OVERFETCH, ge=1)

    model_config = {"frozen": True}


class RecommendationEngine:
    """
    Ranking & filtering over similarity search.

    The index is the only relevance signal; every operation applies its own
    deterministic rules to the raw hit list and returns at most
    min(limit, max_results) items.

    Failure semantics:
      - NotFoundError on the reference product surfaces to the caller.
      - NotFoundError on a history seed is logged and skipped.
      - Index failures propagate untouched.
      - An empty result is a normal outcome.

    Holds no per-request state; safe to share between concurrent requests.
    """

    def __init__(self, catalog: CatalogService, index: EmbeddingIndexClient, config: RankingConfig):
        self.catalog = catalog
        self.index = index
        self.config = config

    def _limit(self, requested: int) -> int:
        return filters.effective_limit(requested, self.config.max_results)

    async def _search(self, query_text: str, top_k: int) -> List[RecoItem]:
        hits = await self.index.search(query_text, top_k, self.config.similarity_threshold)
        return [RecoItem.from_hit(h) for h in hits]

    async def _similar_to(self, product: Product, limit: int) -> List[RecoItem]:
        items = await self._search(product_to_embedding_text(product), limit + SELF_HEADROOM)
        return filters.truncate(filters.exclude_ids(items, [product.product_id]), limit)

    # ---------- Operations ---------------------------------------------------

    async def similar(self, product_id: str, limit: int = 10) -> List[RecoItem]:
        limit = self._limit(limit)
        logger.debug(f"Getting similar products for product_id={product_id}")
        product = await self.catalog.get_by_id(product_id)
        items = await self._similar_to(product, limit)
        logger.info(f"Found {len(items)} similar products for product {product_id}")
        return items

    async def search(self, query: str, limit: int = 10) -> List[RecoItem]:
        limit = self._limit(limit)
        logger.debug(f"Getting recommendations for query: {query}")
        items = await self._search(query, limit)
        logger.info(f"Found {len(items)} recommendations for query: {query}")
        return items

    async def personalized(self, preferences: Optional[str], limit: int = 10) -> List[RecoItem]:
        return await self.search(enrich_preferences(preferences), limit)

    async def from_history(self, viewed_ids: Optional[List[str]], limit: int = 10) -> List[RecoItem]:
        limit = self._limit(limit)
        if not viewed_ids:
            logger.warning("No browsing history provided")
            return []

        seeds = viewed_ids[: self.config.history_seed_limit]
        logger.debug(f"Getting recommendations from browsing history of {len(viewed_ids)} products")

        # first occurrence of each product id wins
        accumulated: List[RecoItem] = []
        for seed in seeds:
            try:
                accumulated = filters.dedupe(accumulated + await self.similar(seed, self.config.history_per_seed))
            except NotFoundError as e:
                logger.warning(f"Failed to get recommendations for product {seed}: {e}")
            if len(accumulated) >= limit:
                break

        items = filters.exclude_ids(accumulated, viewed_ids)
        items = filters.truncate(items, limit)
        logger.info(f"Generated {len(items)} recommendations from browsing history")
        return items

    async def complementary(self, product_id: str, limit: int = 10) -> List[RecoItem]:
        limit = self._limit(limit)
        logger.debug(f"Getting complementary products for product_id={product_id}")
        product = await self.catalog.get_by_id(product_id)
        items = await self._search(complementary_query(product), limit + SELF_HEADROOM)
        items = filters.truncate(filters.exclude_ids(items, [product_id]), limit)
        logger.info(f"Found {len(items)} complementary products")
        return items

    async def trending(self, limit: int = 10) -> List[RecoItem]:
        """
        Top-rated active products. Stand-in for an analytics-driven trending
        signal; does not touch the embedding index.
        """
        limit = self._limit(limit)
        page = await self.catalog.top_rated(page=0, page_size=limit)
        return [RecoItem.from_product(p) for p in page.items][:limit]

    async def category(self, category: str, user_context: Optional[str], limit: int = 10) -> List[RecoItem]:
        if not category or not category.strip():
            raise ValidationFailureError("category must not be blank")
        logger.debug(f"Getting {limit} recommendations for category: {category}")
        return await self.search(category_context_query(category, user_context), limit)

    async def diverse(self, interests: Optional[str], limit: int = 10) -> List[RecoItem]:
        limit = self._limit(limit)
        candidates = await self._search(diverse_interests(interests), limit * self.config.diversity_overfetch)
        items = filters.diversify_by_category(candidates, limit)
        logger.info(
            f"Generated {len(items)} diverse recommendations across "
            f"{len(filters.group_by_category(candidates))} categories"
        )
        return items

    async def _alternatives_pool(self, product_id: str, limit: int):
        reference = await self.catalog.get_by_id(product_id)
        pool_size = min(limit * ALTERNATIVES_HEADROOM, self.config.max_results)
        return reference, await self._similar_to(reference, pool_size)

    async def budget(self, product_id: str, limit: int = 5) -> List[RecoItem]:
        limit = self._limit(limit)
        logger.debug(f"Getting budget alternatives for product_id={product_id}")
        reference, pool = await self._alternatives_pool(product_id, limit)
        items = filters.truncate(filters.cheaper_than(pool, reference.price), limit)
        logger.info(f"Found {len(items)} budget alternatives")
        return items

    async def premium(self, product_id: str, limit: int = 5) -> List[RecoItem]:
        limit = self._limit(limit)
        logger.debug(f"Getting premium alternatives for product_id={product_id}")
        reference, pool = await self._alternatives_pool(product_id, limit)
        items = filters.truncate(filters.costlier_than(pool, reference.price), limit)
        logger.info(f"Found {len(items)} premium alternatives")
        return items

    # ---------- Dispatch & hydration ----------------------------------------

    async def recommend(self, query: RecommendationQuery) -> RecoResult:
        """Run the operation named by `query.intent`."""
        intent = query.intent
        logger.info(f"Starting recommend: intent={intent}, product_id={query.product_id}, limit={query.limit}")

        if intent in (INTENT_SIMILAR, INTENT_COMPLEMENTARY, INTENT_BUDGET, INTENT_PREMIUM):
            if not query.product_id:
                raise ValidationFailureError(f"intent '{intent}' requires a product_id")
            op = {
                INTENT_SIMILAR: self.similar,
                INTENT_COMPLEMENTARY: self.complementary,
                INTENT_BUDGET: self.budget,
                INTENT_PREMIUM: self.premium,
            }[intent]
            items = await op(query.product_id, query.limit)
            return RecoResult.of(intent, items, source_product_id=query.product_id)

        if intent == INTENT_SEARCH:
            items = await self.search(query.query or "", query.limit)
        elif intent == INTENT_PERSONALIZED:
            items = await self.personalized(query.query, query.limit)
        elif intent == INTENT_HISTORY:
            items = await self.from_history(query.viewed_ids, query.limit)
        elif intent == INTENT_TRENDING:
            items = await self.trending(query.limit)
        elif intent == INTENT_DIVERSE:
            items = await self.diverse(query.query, query.limit)
        elif intent == INTENT_CATEGORY:
            items = await self.category(query.category or "", query.user_context, query.limit)
        else:
            raise ValidationFailureError(f"Unknown intent: {intent}")
        return RecoResult.of(intent, items)

    async def hydrate(self, items: List[RecoItem]) -> List[Product]:
        """Full catalog records for a result, in result order."""
        return await self.catalog.get_many([i.product_id for i in items])
