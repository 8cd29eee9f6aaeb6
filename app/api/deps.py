# app/api/deps.py
from functools import lru_cache

from fastapi import Depends
from openai import AsyncOpenAI

from app.core.config import get_settings
from app.db.mongo import get_db
from app.db.redis import get_redis
from app.domain.repositories.embedding_index_repo import EmbeddingIndexRepo
from app.domain.repositories.product_repo import ProductRepo
from app.domain.repositories.vector_cache_repo import VectorCacheRepo
from app.domain.services.catalog_svc import CatalogService
from app.domain.services.embedding_svc import TextEmbedder
from app.domain.services.rag_svc import OpenAITextGenerator, RagService
from app.domain.services.recommendation_svc import RankingConfig, RecommendationEngine
from app.domain.services.vector_index_svc import EmbeddingIndexClient

# Dependency for injecting the MongoDB database into endpoints/services
async def mongo_db(db = Depends(get_db)):
    # Returns the MongoDB database instance (async)
    return db

# Dependency for injecting the Redis client into endpoints/services (may be None)
def redis_dep():
    return get_redis()

@lru_cache
def openai_client() -> AsyncOpenAI:
    settings = get_settings()
    return AsyncOpenAI(api_key=settings.OPENAI_API_KEY, timeout=settings.openai_timeout_s)

def embedding_index(db = Depends(mongo_db), redis = Depends(redis_dep)) -> EmbeddingIndexClient:
    settings = get_settings()
    cache = VectorCacheRepo(redis, prefix=settings.vector_cache_prefix) if redis else None
    embedder = TextEmbedder(
        openai_client(), settings.OPENAI_EMBEDDING_MODEL, cache=cache, cache_ttl=settings.vector_cache_ttl,
    )
    store = EmbeddingIndexRepo(
        db, embedder, collection_name=settings.embeddings_collection, index_name=settings.vector_index_name,
    )
    return EmbeddingIndexClient(store)

def catalog_service(db = Depends(mongo_db), index = Depends(embedding_index)) -> CatalogService:
    settings = get_settings()
    return CatalogService(
        ProductRepo(db, collection_name=settings.products_collection),
        index,
        default_page_size=settings.default_page_size,
        max_page_size=settings.max_page_size,
    )

def recommendation_engine(
    catalog = Depends(catalog_service), index = Depends(embedding_index),
) -> RecommendationEngine:
    settings = get_settings()
    config = RankingConfig(
        similarity_threshold=settings.similarity_threshold,
        max_results=settings.max_recommendation_results,
    )
    return RecommendationEngine(catalog, index, config)

def rag_service(catalog = Depends(catalog_service), index = Depends(embedding_index)) -> RagService:
    settings = get_settings()
    generator = OpenAITextGenerator(
        openai_client(), settings.OPENAI_RAG_MODEL,
        temperature=settings.rag_temperature, timeout_s=settings.openai_timeout_s,
    )
    return RagService(
        index, catalog, generator,
        context_window=settings.rag_context_window,
        similarity_threshold=settings.similarity_threshold,
    )
