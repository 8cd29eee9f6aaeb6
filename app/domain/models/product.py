from enum import Enum
from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional, List, Dict, Any, Literal
from datetime import datetime


class Category(str, Enum):
    ELECTRONICS = "ELECTRONICS"
    CLOTHING = "CLOTHING"
    HOME_GARDEN = "HOME_GARDEN"
    SPORTS_OUTDOORS = "SPORTS_OUTDOORS"
    BOOKS = "BOOKS"
    TOYS_GAMES = "TOYS_GAMES"
    BEAUTY_PERSONAL_CARE = "BEAUTY_PERSONAL_CARE"
    FOOD_BEVERAGES = "FOOD_BEVERAGES"
    AUTOMOTIVE = "AUTOMOTIVE"
    HEALTH_WELLNESS = "HEALTH_WELLNESS"

    @property
    def display_name(self) -> str:
        return _CATEGORY_INFO[self][0]

    @property
    def description(self) -> str:
        return _CATEGORY_INFO[self][1]

    @classmethod
    def lookup(cls, value: str) -> Optional["Category"]:
        """Resolve a category from its enum name or display name (case-insensitive)."""
        if not value:
            return None
        v = value.strip().lower()
        for c in cls:
            if v in (c.value.lower(), c.display_name.lower()):
                return c
        return None


_CATEGORY_INFO = {
    Category.ELECTRONICS: ("Electronics", "Electronic devices and gadgets"),
    Category.CLOTHING: ("Clothing", "Apparel and fashion items"),
    Category.HOME_GARDEN: ("Home & Garden", "Home improvement and garden supplies"),
    Category.SPORTS_OUTDOORS: ("Sports & Outdoors", "Sports equipment and outdoor gear"),
    Category.BOOKS: ("Books", "Books and reading materials"),
    Category.TOYS_GAMES: ("Toys & Games", "Toys and gaming products"),
    Category.BEAUTY_PERSONAL_CARE: ("Beauty & Personal Care", "Beauty and personal care products"),
    Category.FOOD_BEVERAGES: ("Food & Beverages", "Food and beverage items"),
    Category.AUTOMOTIVE: ("Automotive", "Car parts and accessories"),
    Category.HEALTH_WELLNESS: ("Health & Wellness", "Health and wellness products"),
}


class ProductIn(BaseModel):
    """Writable product fields (create and full-field update)."""
    name: str = Field(min_length=3, max_length=200)
    description: str = Field(min_length=10, max_length=2000)
    category: Category
    price: float = Field(gt=0)
    brand: Optional[str] = Field(default=None, max_length=50)
    sku: Optional[str] = Field(default=None, max_length=100)
    tags: List[str] = []
    features: List[str] = []
    stock_quantity: int = Field(default=0, ge=0)
    rating: float = Field(default=0.0, ge=0, le=5)
    review_count: int = Field(default=0, ge=0)
    image_url: Optional[str] = Field(default=None, max_length=500)

    @field_validator("tags")
    @classmethod
    def _normalize_tags(cls, v: List[str]) -> List[str]:
        # tags are a set: dedupe + sort so derived texts stay byte-identical
        return sorted({t.strip() for t in v if t and t.strip()})


class Product(ProductIn):
    product_id: str
    active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"frozen": True}  # immuable = safe


class CatalogFilter(BaseModel):
    """Attribute-based listing filter. Exactly one strategy per listing."""
    kind: Literal["none", "category", "price_range", "keyword", "top_rated"] = "none"
    category: Optional[Category] = None
    min_price: Optional[float] = Field(default=None, ge=0)
    max_price: Optional[float] = Field(default=None, ge=0)
    keyword: Optional[str] = None

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_params(self) -> "CatalogFilter":
        if self.kind == "category" and self.category is None:
            raise ValueError("category filter requires a category")
        if self.kind == "price_range":
            if self.min_price is None or self.max_price is None:
                raise ValueError("price_range filter requires min_price and max_price")
            if self.min_price > self.max_price:
                raise ValueError("min_price must be <= max_price")
        if self.kind == "keyword" and not (self.keyword or "").strip():
            raise ValueError("keyword filter requires a non-blank keyword")
        return self

    @classmethod
    def by_category(cls, category: Category) -> "CatalogFilter":
        return cls(kind="category", category=category)

    @classmethod
    def by_price_range(cls, min_price: float, max_price: float) -> "CatalogFilter":
        return cls(kind="price_range", min_price=min_price, max_price=max_price)

    @classmethod
    def by_keyword(cls, keyword: str) -> "CatalogFilter":
        return cls(kind="keyword", keyword=keyword)

    @classmethod
    def top_rated(cls) -> "CatalogFilter":
        return cls(kind="top_rated")


class ProductPage(BaseModel):
    items: List[Product]
    page: int
    page_size: int
    total: int


class SearchHit(BaseModel):
    """
    One similarity-search result. Metadata is the denormalized copy stored
    next to the vector (product_id, name, category, price, rating, brand, sku),
    so a hit is self-describing without a catalog round-trip.
    """
    product_id: str
    score: float
    content: str = ""
    metadata: Dict[str, Any] = {}

    model_config = {"frozen": True}

    @property
    def category(self) -> Optional[str]:
        return self.metadata.get("category") or None

    @property
    def price(self) -> Optional[float]:
        p = self.metadata.get("price")
        return float(p) if p is not None else None

    @property
    def rating(self) -> Optional[float]:
        r = self.metadata.get("rating")
        return float(r) if r is not None else None


class SyncOutcome(BaseModel):
    """Best-effort result of an embedding-index write triggered by a catalog write."""
    status: Literal["ok", "failed"]
    reason: Optional[str] = None

    model_config = {"frozen": True}

    @classmethod
    def success(cls) -> "SyncOutcome":
        return cls(status="ok")

    @classmethod
    def failed(cls, reason: str) -> "SyncOutcome":
        return cls(status="failed", reason=reason)

    @property
    def ok(self) -> bool:
        return self.status == "ok"
