# fulfillment/app/services/categories.py
"""
Category attribution.

Every item gets a category from, in order: the live catalog lookup, the
category captured at checkout, the fallback label. A whole order is
attributed to its dominant category, the one holding the most units.
The fallback label is a last resort: it only wins when no item in the order
has a real category.
"""
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from fulfillment.app.core.constants import FALLBACK_CATEGORY, UNRESOLVED_CATEGORY_VALUES
from fulfillment.app.core.logging import get_logger
from fulfillment.app.schemas import CategoryShare, OrderItemSnapshot, OrderSnapshot

logger = get_logger(__name__)

CategoryLookup = Callable[[str], Optional[str]]


def normalize_category(label: Optional[str], fallback: str = FALLBACK_CATEGORY) -> Optional[str]:
    """
    Case-folded comparison key for `label`, or None when it carries no category.

    Blank strings, the "null"/"undefined" placeholders and the fallback label
    itself count as unresolved.
    """
    if label is None:
        return None
    key = str(label).strip().casefold()
    if key in UNRESOLVED_CATEGORY_VALUES or key == fallback.casefold():
        return None
    return key


def resolve_item_category(
    item: OrderItemSnapshot,
    category_lookup: Optional[CategoryLookup] = None,
    fallback: str = FALLBACK_CATEGORY,
) -> Tuple[str, Optional[str]]:
    """
    Resolve one item's category.

    Returns:
        (display label, normalized key); the key is None when the item fell
        through to `fallback`.
    """
    candidates = []
    if category_lookup is not None:
        candidates.append(category_lookup(item.product_id))
    candidates.append(item.category_hint)
    for candidate in candidates:
        key = normalize_category(candidate, fallback)
        if key is not None:
            return str(candidate).strip(), key
    return fallback, None


def _tally_quantity(quantity: int) -> int:
    # Malformed quantities still count as one unit
    return quantity if quantity > 0 else 1


def resolve_dominant_category(
    order: OrderSnapshot,
    category_lookup: Optional[CategoryLookup] = None,
    fallback: str = FALLBACK_CATEGORY,
) -> str:
    """
    Single category label for the whole order.

    Quantities are tallied per normalized category; the highest tally wins
    and ties go to the category met first in item order. When the winner is
    the fallback but some item has a real category, the best real category
    wins instead. The label returned is the spelling of the first item that
    produced the winning key.
    """
    tallies: Dict[Optional[str], int] = {}
    labels: Dict[str, str] = {}
    for item in order.items:
        label, key = resolve_item_category(item, category_lookup, fallback)
        if key is not None:
            labels.setdefault(key, label)
        tallies[key] = tallies.get(key, 0) + _tally_quantity(item.quantity)

    if not tallies:
        return fallback

    # max() keeps the first maximum, i.e. the first-encountered category
    dominant = max(tallies, key=lambda k: tallies[k])
    if dominant is None:
        genuine = [k for k in tallies if k is not None]
        if not genuine:
            logger.debug("No category resolvable for any item", order_id=order.id)
            return fallback
        dominant = max(genuine, key=lambda k: tallies[k])
    return labels[dominant]


def category_breakdown(
    orders: Iterable[OrderSnapshot],
    category_lookup: Optional[CategoryLookup] = None,
    fallback: str = FALLBACK_CATEGORY,
) -> List[CategoryShare]:
    """Count orders per dominant category, largest share first."""
    counts: Dict[str, int] = {}
    spelling: Dict[str, str] = {}
    for order in orders:
        label = resolve_dominant_category(order, category_lookup, fallback)
        key = label.casefold()
        spelling.setdefault(key, label)
        counts[key] = counts.get(key, 0) + 1
    ranked = sorted(counts.items(), key=lambda kv: -kv[1])
    return [CategoryShare(category=spelling[k], order_count=n) for k, n in ranked]
