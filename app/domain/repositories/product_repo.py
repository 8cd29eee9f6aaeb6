# app/domain/repositories/product_repo.py

from __future__ import annotations
from contextlib import contextmanager
from typing import Optional, List, Tuple, AsyncIterator, Dict, Any
from datetime import datetime, timezone
import re
import uuid

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError

from app.domain.errors import CollaboratorUnavailableError
from app.domain.models.product import Product, ProductIn, CatalogFilter, Category


@contextmanager
def _catalog_errors():
    try:
        yield
    except PyMongoError as e:
        raise CollaboratorUnavailableError("catalog", str(e)) from e


def _query_for(filt: CatalogFilter) -> Tuple[Dict[str, Any], List[Tuple[str, int]]]:
    """Translate a CatalogFilter into (mongo query, sort spec). Always active-only."""
    query: Dict[str, Any] = {"active": True}
    if filt.kind == "category":
        query["category"] = filt.category.value
        return query, [("name", 1)]
    if filt.kind == "price_range":
        query["price"] = {"$gte": filt.min_price, "$lte": filt.max_price}
        return query, [("price", 1)]
    if filt.kind == "keyword":
        rx = {"$regex": re.escape(filt.keyword.strip()), "$options": "i"}
        query["$or"] = [{"name": rx}, {"description": rx}, {"features": rx}]
        return query, [("name", 1)]
    if filt.kind == "top_rated":
        query["review_count"] = {"$gt": 0}
        return query, [("rating", -1), ("review_count", -1)]
    return query, [("created_at", -1)]


class ProductRepo:
    """
    Product repository backed by the 'products' collection.
    Documents are keyed by `product_id`; `_id` never leaves this class.
    """

    def __init__(self, db: AsyncIOMotorDatabase, collection_name: str = "products"):
        self.col = db[collection_name]

    async def get_by_product_id(self, product_id: str) -> Optional[Product]:
        # Ignores `active`: soft-deleted products stay addressable by id
        with _catalog_errors():
            doc = await self.col.find_one({"product_id": product_id}, {"_id": 0})
        return Product.model_validate(doc) if doc else None

    async def get_many_by_product_ids(self, ids: List[str]) -> List[Product]:
        with _catalog_errors():
            cursor = self.col.find({"product_id": {"$in": ids}}, {"_id": 0})
            docs = [doc async for doc in cursor]
        by_id = {d["product_id"]: d for d in docs}
        return [Product.model_validate(by_id[i]) for i in ids if i in by_id]

    async def find_active(self, filt: CatalogFilter, skip: int, limit: int) -> Tuple[List[Product], int]:
        query, sort = _query_for(filt)
        with _catalog_errors():
            total = await self.col.count_documents(query)
            cursor = self.col.find(query, {"_id": 0}).sort(sort).skip(skip).limit(limit)
            docs = [doc async for doc in cursor]
        return [Product.model_validate(d) for d in docs], total

    async def iter_active(self) -> AsyncIterator[Product]:
        with _catalog_errors():
            async for doc in self.col.find({"active": True}, {"_id": 0}):
                yield Product.model_validate(doc)

    async def iter_inactive_ids(self) -> AsyncIterator[str]:
        with _catalog_errors():
            async for doc in self.col.find({"active": False}, {"_id": 0, "product_id": 1}):
                yield doc["product_id"]

    async def count_by_category(self, category: Category) -> int:
        with _catalog_errors():
            return await self.col.count_documents({"category": category.value, "active": True})

    async def distinct_brands(self) -> List[str]:
        with _catalog_errors():
            values = await self.col.distinct("brand", {"active": True, "brand": {"$nin": [None, ""]}})
        return sorted(values)

    async def distinct_tags(self) -> List[str]:
        with _catalog_errors():
            values = await self.col.distinct("tags", {"active": True})
        return sorted(v for v in values if v)

    # ----- Writes -------------------------------------------------------------

    async def insert(self, data: ProductIn) -> Product:
        now = datetime.now(timezone.utc)
        product = Product(
            **data.model_dump(),
            product_id=uuid.uuid4().hex,
            active=True,
            created_at=now,
            updated_at=now,
        )
        with _catalog_errors():
            await self.col.insert_one(product.model_dump(mode="json") | {"created_at": now, "updated_at": now})
        return product

    async def update(self, product_id: str, data: ProductIn) -> Optional[Product]:
        fields = data.model_dump(mode="json")
        fields["updated_at"] = datetime.now(timezone.utc)
        with _catalog_errors():
            doc = await self.col.find_one_and_update(
                {"product_id": product_id},
                {"$set": fields},
                projection={"_id": 0},
                return_document=ReturnDocument.AFTER,
            )
        return Product.model_validate(doc) if doc else None

    async def set_active(self, product_id: str, active: bool) -> bool:
        with _catalog_errors():
            res = await self.col.update_one(
                {"product_id": product_id},
                {"$set": {"active": active, "updated_at": datetime.now(timezone.utc)}},
            )
        return res.matched_count > 0
