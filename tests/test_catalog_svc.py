from __future__ import annotations

import asyncio

import pytest

from app.domain.errors import NotFoundError, ValidationFailureError
from app.domain.models.product import Category, CatalogFilter, ProductIn
from fakes import make_product


def product_in(**overrides) -> ProductIn:
    data = dict(
        name="Noise Cancelling Headphones",
        description="Over-ear headphones with active noise cancelling",
        category=Category.ELECTRONICS,
        price=199.99,
        brand="Acme",
        tags=["audio", "wireless"],
    )
    data.update(overrides)
    return ProductIn(**data)


def test_get_by_id_ignores_active_flag(catalog, repo):
    repo.add(make_product("old", active=False))
    assert asyncio.run(catalog.get_by_id("old")).active is False


def test_get_by_id_unknown_raises(catalog):
    with pytest.raises(NotFoundError):
        asyncio.run(catalog.get_by_id("nope"))


def test_get_many_keeps_request_order_and_skips_unknown(catalog, repo):
    repo.add(make_product("a"), make_product("b"))
    products = asyncio.run(catalog.get_many(["b", "x", "a", "b"]))
    assert [p.product_id for p in products] == ["b", "a"]


def test_list_active_clamps_page_size(catalog, repo):
    repo.add(*[make_product(str(i)) for i in range(3)])

    page = asyncio.run(catalog.list_active(page=0, page_size=1000))

    assert page.page_size == 100
    assert page.total == 3
    assert repo.find_calls[-1][2] == 100


def test_list_active_defaults_and_offsets(catalog, repo):
    repo.add(*[make_product(str(i)) for i in range(25)])

    page = asyncio.run(catalog.list_active(page=2))

    assert page.page_size == 10
    assert len(page.items) == 5
    assert repo.find_calls[-1][1] == 20


def test_list_active_rejects_bad_paging(catalog):
    with pytest.raises(ValidationFailureError):
        asyncio.run(catalog.list_active(page=-1))
    with pytest.raises(ValidationFailureError):
        asyncio.run(catalog.list_active(page_size=0))


def test_list_active_excludes_inactive_and_filters(catalog, repo):
    repo.add(
        make_product("book", category=Category.BOOKS),
        make_product("old-book", category=Category.BOOKS, active=False),
        make_product("tv"),
    )
    page = asyncio.run(catalog.list_active(CatalogFilter.by_category(Category.BOOKS)))
    assert [p.product_id for p in page.items] == ["book"]


def test_filter_requires_its_parameters():
    with pytest.raises(ValueError):
        CatalogFilter(kind="price_range", min_price=10)
    with pytest.raises(ValueError):
        CatalogFilter.by_price_range(50, 10)
    with pytest.raises(ValueError):
        CatalogFilter.by_keyword("  ")


def test_create_upserts_into_index(catalog, store):
    product = asyncio.run(catalog.create(product_in()))

    assert product.product_id
    assert product.tags == ["audio", "wireless"]
    assert [u[0] for u in store.upserts] == [product.product_id]
    assert store.upserts[0][2]["category"] == "ELECTRONICS"


def test_create_succeeds_when_index_write_fails(catalog, repo, store, caplog):
    store.fail_writes = True

    product = asyncio.run(catalog.create(product_in()))

    assert product.product_id in repo.products
    assert store.upserts == []
    assert "Embedding index upsert failed" in caplog.text


def test_update_reindexes_active_product(catalog, repo, store):
    repo.add(make_product("p1"))
    updated = asyncio.run(catalog.update("p1", product_in(name="Renamed Headphones")))
    assert updated.name == "Renamed Headphones"
    assert store.upserts[-1][0] == "p1"


def test_update_of_inactive_product_skips_index(catalog, repo, store):
    repo.add(make_product("p1", active=False))
    asyncio.run(catalog.update("p1", product_in()))
    assert store.upserts == []


def test_update_unknown_raises(catalog):
    with pytest.raises(NotFoundError):
        asyncio.run(catalog.update("nope", product_in()))


def test_soft_delete_deactivates_and_removes_from_index(catalog, repo, store):
    repo.add(make_product("p1"))

    asyncio.run(catalog.soft_delete("p1"))

    assert repo.products["p1"].active is False
    assert store.deletes == ["p1"]


def test_soft_delete_survives_index_failure(catalog, repo, store):
    repo.add(make_product("p1"))
    store.fail_writes = True
    asyncio.run(catalog.soft_delete("p1"))
    assert repo.products["p1"].active is False


def test_soft_delete_unknown_raises(catalog, store):
    with pytest.raises(NotFoundError):
        asyncio.run(catalog.soft_delete("nope"))
    assert store.deletes == []


def test_aggregates(catalog, repo):
    repo.add(
        make_product("a", brand="Zeta", tags=["x"]),
        make_product("b", brand="Acme", tags=["y", "x"], category=Category.BOOKS),
        make_product("c", brand="Hidden", active=False),
    )
    assert asyncio.run(catalog.distinct_brands()) == ["Acme", "Zeta"]
    assert asyncio.run(catalog.distinct_tags()) == ["x", "y"]
    assert asyncio.run(catalog.count_by_category(Category.BOOKS)) == 1


def test_resync_index_batches_active_products(catalog, repo, store):
    repo.add(*[make_product(str(i)) for i in range(5)], make_product("off", active=False))

    stats = asyncio.run(catalog.resync_index(batch_size=2))

    assert stats["seen"] == 5
    assert stats["synced"] == 5
    assert stats["errors"] == []
    assert "off" not in [u[0] for u in store.upserts]


def test_resync_index_records_failed_batches(catalog, repo, store):
    repo.add(*[make_product(str(i)) for i in range(3)])
    store.fail_batches = True

    stats = asyncio.run(catalog.resync_index(batch_size=2))

    assert stats["seen"] == 3
    assert stats["synced"] == 0
    assert len(stats["errors"]) == 2


def test_resync_removes_product_whose_index_removal_failed(catalog, repo, store):
    repo.add(make_product("gone"), make_product("kept"))
    store.fail_writes = True
    asyncio.run(catalog.soft_delete("gone"))
    assert store.deletes == []

    store.fail_writes = False
    stats = asyncio.run(catalog.resync_index())

    assert store.deletes == ["gone"]
    assert stats["removed"] == 1
    assert stats["synced"] == 1
    assert stats["errors"] == []


def test_resync_records_failed_removals(catalog, repo, store):
    repo.add(make_product("gone", active=False))
    store.fail_writes = True

    stats = asyncio.run(catalog.resync_index())

    assert stats["removed"] == 0
    assert stats["errors"] == ["remove_error product_id=gone: connection refused"]
