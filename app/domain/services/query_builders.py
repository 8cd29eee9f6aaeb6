# app/domain/services/query_builders.py
"""
Query text builders. Pure functions, no I/O.

`product_to_embedding_text` is also the text the index embeds for each product:
changing its composition changes the vector space and requires a full re-sync.
"""
from __future__ import annotations
from typing import Optional

from app.domain.models.product import Category, Product

DEFAULT_PREFERENCES = "popular high-quality products"
DEFAULT_INTERESTS = "general shopping"
DEFAULT_USER_CONTEXT = "quality products"


def _blank(s: Optional[str]) -> bool:
    return s is None or not s.strip()


def product_to_embedding_text(product: Product) -> str:
    parts = [
        f"Product: {product.name}.",
        f"Description: {product.description}.",
        f"Category: {product.category.display_name}.",
    ]
    if product.brand:
        parts.append(f"Brand: {product.brand}.")
    if product.features:
        parts.append(f"Features: {', '.join(product.features)}.")
    if product.tags:
        parts.append(f"Tags: {', '.join(product.tags)}.")
    parts.append(f"Price: ${product.price:.2f}.")
    if product.rating and product.rating > 0:
        parts.append(f"Rating: {product.rating:.2f} stars ({product.review_count} reviews).")
    return " ".join(parts)


def enrich_preferences(raw_preferences: Optional[str]) -> str:
    if _blank(raw_preferences):
        return DEFAULT_PREFERENCES
    return (
        f"Products matching user preferences: {raw_preferences}. "
        "Looking for quality, value, and relevance."
    )


def complementary_query(product: Product) -> str:
    return (
        f"Products that complement {product.name} in category "
        f"{product.category.display_name}, accessories and related items"
    )


def category_context_query(category: str, user_context: Optional[str]) -> str:
    known = Category.lookup(category)
    label = known.display_name if known else category.strip()
    context = DEFAULT_USER_CONTEXT if _blank(user_context) else user_context.strip()
    return f"{context} products in {label} category"


def diverse_interests(raw_interests: Optional[str]) -> str:
    return DEFAULT_INTERESTS if _blank(raw_interests) else raw_interests.strip()
