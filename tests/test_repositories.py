from __future__ import annotations

import asyncio

import pytest
from pymongo.errors import PyMongoError, ServerSelectionTimeoutError

from app.domain.errors import CollaboratorUnavailableError
from app.domain.models.product import Category, CatalogFilter
from app.domain.repositories.embedding_index_repo import EmbeddingIndexRepo
from app.domain.repositories.product_repo import ProductRepo, _query_for


class AsyncCursor:
    def __init__(self, docs):
        self._docs = list(docs)

    def __aiter__(self):
        return self

    async def __anext__(self):
        if not self._docs:
            raise StopAsyncIteration
        return self._docs.pop(0)


class FakeCollection:
    def __init__(self, docs=None, error: PyMongoError = None):
        self.docs = docs or []
        self.error = error
        self.pipelines = []
        self.updates = []

    def aggregate(self, pipeline):
        self.pipelines.append(pipeline)
        if self.error:
            raise self.error
        return AsyncCursor(self.docs)

    async def update_one(self, flt, update, upsert=False):
        if self.error:
            raise self.error
        self.updates.append((flt, update, upsert))

    async def find_one(self, flt, projection=None):
        if self.error:
            raise self.error
        return next((d for d in self.docs if d["product_id"] == flt["product_id"]), None)


class FakeEmbedder:
    model = "test-model"

    async def embed(self, text):
        return [0.1, 0.2]


def test_query_for_each_filter_kind():
    q, sort = _query_for(CatalogFilter())
    assert q == {"active": True}
    assert sort == [("created_at", -1)]

    q, sort = _query_for(CatalogFilter.by_category(Category.BOOKS))
    assert q == {"active": True, "category": "BOOKS"}
    assert sort == [("name", 1)]

    q, sort = _query_for(CatalogFilter.by_price_range(10, 20))
    assert q["price"] == {"$gte": 10, "$lte": 20}
    assert sort == [("price", 1)]

    q, _ = _query_for(CatalogFilter.top_rated())
    assert q["review_count"] == {"$gt": 0}


def test_keyword_query_escapes_regex():
    q, _ = _query_for(CatalogFilter.by_keyword(" usb-c (2m) "))
    rx = q["$or"][0]["name"]
    assert rx == {"$regex": r"usb\-c\ \(2m\)", "$options": "i"}
    assert [list(c)[0] for c in q["$or"]] == ["name", "description", "features"]


def test_index_search_pipeline():
    col = FakeCollection(docs=[{"product_id": "a", "score": 0.9, "text": "t", "metadata": {}}])
    repo = EmbeddingIndexRepo({"product_embeddings": col}, FakeEmbedder())

    rows = asyncio.run(repo.search("shoes", 5, 0.7))

    assert rows[0]["product_id"] == "a"
    stage = col.pipelines[0][0]["$vectorSearch"]
    assert stage["queryVector"] == [0.1, 0.2]
    assert stage["limit"] == 5
    assert stage["numCandidates"] == 200
    assert col.pipelines[0][2] == {"$match": {"score": {"$gte": 0.7}}}


def test_index_upsert_stores_text_vector_and_metadata():
    col = FakeCollection()
    repo = EmbeddingIndexRepo({"product_embeddings": col}, FakeEmbedder())

    asyncio.run(repo.upsert("p1", "Product: Desk.", {"price": 10}))

    flt, update, upsert = col.updates[0]
    assert flt == {"product_id": "p1"}
    assert upsert is True
    assert update["$set"]["vector"] == [0.1, 0.2]
    assert update["$set"]["model"] == "test-model"


def test_index_store_errors_become_collaborator_unavailable():
    col = FakeCollection(error=ServerSelectionTimeoutError("no servers"))
    repo = EmbeddingIndexRepo({"product_embeddings": col}, FakeEmbedder())
    with pytest.raises(CollaboratorUnavailableError) as exc:
        asyncio.run(repo.search("shoes", 5, 0.7))
    assert exc.value.collaborator == "embedding index"


def test_catalog_store_errors_become_collaborator_unavailable():
    repo = ProductRepo({"products": FakeCollection(error=ServerSelectionTimeoutError("no servers"))})
    with pytest.raises(CollaboratorUnavailableError) as exc:
        asyncio.run(repo.get_by_product_id("p1"))
    assert exc.value.collaborator == "catalog"
