"""
Deterministic post-filtering rules applied to similarity results.
Items only need `product_id`, `price` and `category` attributes.
"""
from typing import Iterable, List, Optional, Sequence, TypeVar, Dict

from app.domain.errors import ValidationFailureError
from app.domain.services.constants import UNCATEGORIZED

T = TypeVar("T")


def effective_limit(requested: int, ceiling: int) -> int:
    """Clamp a requested result count to the configured ceiling. Rejects limit < 1."""
    if requested is None or requested < 1:
        raise ValidationFailureError(f"limit must be >= 1, got {requested}")
    return min(requested, ceiling)


def exclude_ids(items: Iterable[T], ids: Iterable[str]) -> List[T]:
    banned = set(ids)
    return [it for it in items if it.product_id not in banned]


def dedupe(items: Iterable[T]) -> List[T]:
    """Keep the first occurrence of each product_id, preserving order."""
    seen = set()
    out: List[T] = []
    for it in items:
        if it.product_id not in seen:
            seen.add(it.product_id)
            out.append(it)
    return out


def cheaper_than(items: Iterable[T], reference_price: float) -> List[T]:
    """Items priced strictly below the reference, closest price first."""
    kept = [it for it in items if it.price is not None and it.price < reference_price]
    return sorted(kept, key=lambda it: it.price, reverse=True)


def costlier_than(items: Iterable[T], reference_price: float) -> List[T]:
    """Items priced strictly above the reference, closest price first."""
    kept = [it for it in items if it.price is not None and it.price > reference_price]
    return sorted(kept, key=lambda it: it.price)


def group_by_category(items: Iterable[T]) -> Dict[str, List[T]]:
    """Bucket items by category; buckets and their contents keep input order."""
    buckets: Dict[str, List[T]] = {}
    for it in items:
        buckets.setdefault(it.category or UNCATEGORIZED, []).append(it)
    return buckets


def diversify_by_category(items: Sequence[T], limit: int) -> List[T]:
    """
    Round-robin selection across categories.

    The (category, queue) list is built once. Each pass takes the head of every
    non-empty queue in category order; passes repeat until `limit` items are
    chosen or every queue is drained. Returns fewer than `limit` items when the
    pool is too small.
    """
    queues = [list(bucket) for bucket in group_by_category(items).values()]
    chosen: List[T] = []
    cursor = [0] * len(queues)

    while len(chosen) < limit:
        took = False
        for qi, queue in enumerate(queues):
            if cursor[qi] >= len(queue):
                continue
            chosen.append(queue[cursor[qi]])
            cursor[qi] += 1
            took = True
            if len(chosen) >= limit:
                break
        if not took:
            break
    return chosen


def truncate(items: Sequence[T], limit: Optional[int]) -> List[T]:
    return list(items if limit is None else items[:limit])
