from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from app.api.deps import catalog_service, embedding_index, rag_service, recommendation_engine, redis_dep
from app.domain.models.product import Category
from app.main import app
from fakes import LockRedis, hit, make_product


@pytest.fixture
def redis():
    return None


@pytest.fixture
def client(catalog, engine, rag, index, redis):
    app.dependency_overrides = {
        catalog_service: lambda: catalog,
        recommendation_engine: lambda: engine,
        rag_service: lambda: rag,
        embedding_index: lambda: index,
        redis_dep: lambda: redis,
    }
    # no context manager: the lifespan (Mongo/Redis connections) must not run
    yield TestClient(app)
    app.dependency_overrides = {}


NEW_PRODUCT = {
    "name": "Trail Running Shoe",
    "description": "Lightweight shoe for technical trails",
    "category": "SPORTS_OUTDOORS",
    "price": 129.0,
    "brand": "Acme",
    "tags": ["running", "trail"],
}


# ---------- products ---------------------------------------------------------------

def test_create_then_get_product(client, store):
    r = client.post("/products", json=NEW_PRODUCT)
    assert r.status_code == 201
    pid = r.json()["product_id"]
    assert [u[0] for u in store.upserts] == [pid]

    r = client.get(f"/products/{pid}")
    assert r.status_code == 200
    assert r.json()["name"] == "Trail Running Shoe"


def test_create_rejects_invalid_product(client):
    r = client.post("/products", json={**NEW_PRODUCT, "price": 0})
    assert r.status_code == 422


def test_unknown_product_is_404(client):
    r = client.get("/products/nope")
    assert r.status_code == 404
    assert r.json()["product_id"] == "nope"


def test_list_products_clamps_size_and_filters(client, repo):
    repo.add(make_product("b1", category=Category.BOOKS), make_product("e1"))

    r = client.get("/products", params={"size": 1000})
    assert r.json()["page_size"] == 100
    assert r.json()["total"] == 2

    r = client.get("/products", params={"category": "Books"})
    assert [p["product_id"] for p in r.json()["items"]] == ["b1"]


def test_list_products_rejects_bad_filters(client):
    assert client.get("/products", params={"keyword": "x", "top_rated": True}).status_code == 400
    assert client.get("/products", params={"category": "Gizmos"}).status_code == 400
    assert client.get("/products", params={"min_price": 50, "max_price": 10}).status_code == 400
    assert client.get("/products", params={"page": -1}).status_code == 422


def test_delete_is_soft(client, repo, store):
    repo.add(make_product("p1"))

    assert client.delete("/products/p1").status_code == 204
    assert store.deletes == ["p1"]
    assert client.get("/products/p1").json()["active"] is False
    assert client.delete("/products/missing").status_code == 404


def test_category_count_and_brands(client, repo):
    repo.add(make_product("b1", category=Category.BOOKS, brand="Penguin"))
    r = client.get("/products/categories/BOOKS/count")
    assert r.json() == {
        "category": "BOOKS",
        "display_name": "Books",
        "description": "Books and reading materials",
        "count": 1,
    }
    assert client.get("/products/brands").json() == ["Penguin"]


def test_reindex_without_redis(client, repo):
    repo.add(make_product("a"), make_product("b"))
    r = client.post("/products/reindex")
    assert r.status_code == 200
    assert r.json()["synced"] == 2


@pytest.mark.parametrize("redis", [LockRedis()])
def test_reindex_conflicts_when_locked(client, redis):
    redis.data["lock:products:reindex"] = "someone-else"
    assert client.post("/products/reindex").status_code == 409


# ---------- recommendations --------------------------------------------------------

def test_similar_endpoint(client, repo, store):
    repo.add(make_product("p1"), make_product("a", name="Alpha Speaker"))
    store.hits = [hit("p1", 0.99), hit("a", 0.9)]

    body = client.get("/recommendations/similar/p1", params={"limit": 5}).json()
    assert body["intent"] == "similar"
    assert body["source_product_id"] == "p1"
    assert [i["product_id"] for i in body["items"]] == ["a"]

    body = client.get("/recommendations/similar/p1", params={"hydrate": True}).json()
    assert body["items"][0]["name"] == "Alpha Speaker"


def test_budget_endpoint(client, repo, store):
    repo.add(make_product("ref", price=100))
    store.hits = [hit("x", 0.9, price=80), hit("y", 0.85, price=120), hit("z", 0.8, price=100)]

    body = client.get("/recommendations/budget-alternatives/ref").json()
    assert [i["product_id"] for i in body["items"]] == ["x"]


def test_history_endpoint_with_empty_views(client, store):
    body = client.post("/recommendations/from-history", json={"viewed_product_ids": []}).json()
    assert body["count"] == 0
    assert store.search_calls == []


def test_invalid_limit_is_422(client, store):
    assert client.get("/recommendations/search", params={"query": "x", "limit": 0}).status_code == 422
    assert store.search_calls == []


def test_index_outage_is_503(client, store):
    store.fail_search = True
    r = client.get("/recommendations/search", params={"query": "speakers"})
    assert r.status_code == 503
    assert r.json()["detail"] == "embedding index unavailable"


# ---------- queries -------------------------------------------------------------------

def test_ask_without_context(client, generator):
    r = client.post("/queries/ask", json={"query": "purple unicorn saddle"})
    assert r.status_code == 200
    assert r.json()["context_documents_used"] == 0
    assert generator.prompts == []


def test_ask_with_context(client, store):
    store.hits = [hit("a", 0.9)]
    body = client.post("/queries/ask", json={"query": "best speaker"}).json()
    assert body == {"query": "best speaker", "answer": "generated answer", "context_documents_used": 1}


def test_faq_for_unknown_product_is_404(client):
    r = client.post("/queries/product-faq/nope", json={"question": "Does it float?"})
    assert r.status_code == 404


def test_health_reports_index(client, monkeypatch):
    from app.api.v1.routers import health

    async def ping():
        return None

    monkeypatch.setattr(health.mongo, "ping", ping)
    body = client.get("/health").json()
    assert body["checks"]["mongodb"] == "ok"
    assert body["checks"]["redis"] == "skipped"
    assert body["checks"]["embedding_index"] == "ok"
    assert body["status"] == "ok"
