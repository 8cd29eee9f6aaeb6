from __future__ import annotations

import os

# Settings are read at import time by app.main; required values must exist first.
os.environ.setdefault("MONGO_URI", "mongodb://localhost:27017")
os.environ.setdefault("MONGO_DB", "recommender_test")
os.environ.setdefault("OPENAI_API_KEY", "sk-test")
os.environ.setdefault("DEBUG", "false")

import pytest

from app.domain.services.catalog_svc import CatalogService
from app.domain.services.recommendation_svc import RankingConfig, RecommendationEngine
from app.domain.services.rag_svc import RagService
from app.domain.services.vector_index_svc import EmbeddingIndexClient
from fakes import FakeGenerator, FakeProductRepo, FakeVectorStore


@pytest.fixture
def repo():
    return FakeProductRepo()


@pytest.fixture
def store():
    return FakeVectorStore()


@pytest.fixture
def index(store):
    return EmbeddingIndexClient(store)


@pytest.fixture
def catalog(repo, index):
    return CatalogService(repo, index, default_page_size=10, max_page_size=100)


@pytest.fixture
def engine(catalog, index):
    return RecommendationEngine(catalog, index, RankingConfig(similarity_threshold=0.7, max_results=20))


@pytest.fixture
def generator():
    return FakeGenerator()


@pytest.fixture
def rag(index, catalog, generator):
    return RagService(index, catalog, generator, context_window=5, similarity_threshold=0.7)
