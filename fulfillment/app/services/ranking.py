"""
Top-seller ranking over completed orders.
"""
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Optional

from fulfillment.app.core.constants import (
    DEFAULT_TOP_SELLERS_LIMIT,
    FALLBACK_CATEGORY,
    UNRESOLVED_CATEGORY_VALUES,
    ZERO,
)
from fulfillment.app.schemas import OrderSnapshot, TopSeller
from fulfillment.app.services.categories import CategoryLookup, normalize_category, resolve_item_category
from fulfillment.app.services.revenue import is_revenue_eligible

NameLookup = Callable[[str], Optional[str]]


def rank_top_sellers(
    orders: Iterable[OrderSnapshot],
    category_filter: Optional[str] = None,
    limit: int = DEFAULT_TOP_SELLERS_LIMIT,
    category_lookup: Optional[CategoryLookup] = None,
    name_lookup: Optional[NameLookup] = None,
    fallback_category: str = FALLBACK_CATEGORY,
) -> List[TopSeller]:
    """
    Rank products by units sold in revenue-eligible orders.

    A product's category is resolved per item (catalog, then checkout hint,
    then fallback), from the first item of that product met. Products whose
    average unit price is not positive are dropped. Ties keep first-encounter
    order; the result is cut to `limit` entries.
    """
    stats: Dict[str, Dict] = {}
    for order in orders:
        if not is_revenue_eligible(order.status):
            continue
        for item in order.items:
            entry = stats.get(item.product_id)
            if entry is None:
                label, key = resolve_item_category(item, category_lookup, fallback_category)
                name = (name_lookup(item.product_id) if name_lookup else None) or item.name_hint
                entry = stats[item.product_id] = {
                    "name": name or f"Product {item.product_id}",
                    "category": label,
                    "category_key": key,
                    "units_sold": 0,
                    "total_revenue": ZERO,
                }
            entry["units_sold"] += item.quantity
            entry["total_revenue"] += item.line_total

    # Blank and placeholder filters mean "no filter"; the fallback label selects uncategorized products
    if category_filter is not None and category_filter.strip().casefold() in UNRESOLVED_CATEGORY_VALUES:
        category_filter = None
    wanted_key = normalize_category(category_filter, fallback_category) if category_filter is not None else None

    ranked: List[TopSeller] = []
    for product_id, entry in stats.items():
        units = entry["units_sold"]
        if units <= 0:
            continue
        average = entry["total_revenue"] / Decimal(units)
        if average <= 0:
            continue
        if category_filter is not None and entry["category_key"] != wanted_key:
            continue
        ranked.append(
            TopSeller(
                product_id=product_id,
                name=entry["name"],
                category=entry["category"],
                units_sold=units,
                total_revenue=entry["total_revenue"],
                average_unit_price=average,
            )
        )

    ranked.sort(key=lambda p: -p.units_sold)
    return ranked[:max(limit, 0)]
