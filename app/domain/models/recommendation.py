from pydantic import BaseModel, Field, field_validator
from typing import Optional, List

from app.domain.models.product import Product, SearchHit
from app.domain.services.constants import ALL_INTENTS


class RecommendationQuery(BaseModel):
    """Transient request for one engine operation; discarded after the response."""
    intent: str
    limit: int = 10
    query: Optional[str] = None
    product_id: Optional[str] = None
    viewed_ids: Optional[List[str]] = None
    category: Optional[str] = None
    user_context: Optional[str] = None

    @field_validator("intent")
    @classmethod
    def _known_intent(cls, v: str) -> str:
        if v not in ALL_INTENTS:
            raise ValueError(f"Unknown intent: {v}")
        return v


class RecoItem(BaseModel):
    product_id: str
    score: Optional[float] = Field(default=None, ge=0)
    name: Optional[str] = None
    category: Optional[str] = None
    price: Optional[float] = None
    rating: Optional[float] = None
    brand: Optional[str] = None
    model_config = {"frozen": True} # immuable = safe

    @classmethod
    def from_hit(cls, hit: SearchHit) -> "RecoItem":
        meta = hit.metadata
        return cls(
            product_id=hit.product_id,
            score=max(hit.score, 0.0),
            name=meta.get("name"),
            category=hit.category,
            price=hit.price,
            rating=hit.rating,
            brand=meta.get("brand") or None,
        )

    @classmethod
    def from_product(cls, product: Product) -> "RecoItem":
        return cls(
            product_id=product.product_id,
            name=product.name,
            category=product.category.value,
            price=product.price,
            rating=product.rating,
            brand=product.brand,
        )


class RecoResult(BaseModel):
    intent: str
    source_product_id: Optional[str] = None
    items: List[RecoItem]
    count: int
    model_config = {"frozen": True} # immuable = safe

    @classmethod
    def of(cls, intent: str, items: List[RecoItem], source_product_id: Optional[str] = None) -> "RecoResult":
        return cls(intent=intent, source_product_id=source_product_id, items=items, count=len(items))

    @property
    def product_ids(self) -> List[str]:
        return [i.product_id for i in self.items]
