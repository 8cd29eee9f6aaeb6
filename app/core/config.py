from functools import lru_cache
from typing import Literal
import os
from pydantic_settings import BaseSettings, SettingsConfigDict

EnvName = Literal["development", "production"]

def _env_file_for(app_env: EnvName) -> str:
    return ".env.development" if app_env == "development" else ".env.production"

class Settings(BaseSettings):

    # Core
    APP_ENV: EnvName = "development"
    APP_NAME: str = "ProductRecommender"
    DEBUG: bool = False
    GIT_SHA: str = "unknown"

    # Mongo (catalog + embedding index)
    MONGO_URI: str # ✅ declared
    MONGO_DB: str # ✅ declared
    products_collection: str = "products"
    embeddings_collection: str = "product_embeddings"
    vector_index_name: str = "vector_index"

    # Redis (optional: query embedding cache + reindex lock)
    REDIS_URL: str = ""

    # Query embedding cache
    vector_cache_ttl: int = 24 * 3600          # 24h
    vector_cache_prefix: str = "qvec"          # redis key namespace

    # Bulk re-sync
    resync_lock_ttl: int = 600                 # seconds
    resync_batch_size: int = 64                # products per embedding batch

    # OpenAI
    OPENAI_API_KEY: str # ✅ declared
    openai_timeout_s: int = 30  # seconds
    OPENAI_EMBEDDING_MODEL: str = "text-embedding-3-small"
    OPENAI_RAG_MODEL: str = "gpt-4o-mini"

    # Catalog paging
    default_page_size: int = 10
    max_page_size: int = 100

    # Recommendation
    similarity_threshold: float = 0.7
    max_recommendation_results: int = 20

    # RAG
    rag_context_window: int = 5
    rag_temperature: float = 0.3

    # pydantic-settings config will be set dynamically in the factory below
    model_config = SettingsConfigDict(env_file=None, case_sensitive=True)

@lru_cache
def get_settings() -> Settings:
    """
    Factory that chooses the right .env file based on APP_ENV.
    Cache makes it cheap to inject via FastAPI dependencies.
    """
    app_env: EnvName = os.getenv("APP_ENV", "development")  # earliest switch
    env_file = _env_file_for(app_env)
    return Settings(
                _env_file=env_file,  # load .env.development or .env.production
                _env_file_encoding="utf-8"
    )
