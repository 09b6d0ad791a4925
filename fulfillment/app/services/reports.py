# fulfillment/app/services/reports.py
"""
Sales reports for the operator and seller dashboards.

Fetches the order slice once, then runs the pure pipeline:
window filter -> revenue attribution -> dense series -> category
attribution -> top-seller ranking.
"""
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Set

from fulfillment.app.core.constants import UNKNOWN_CUSTOMER_NAME
from fulfillment.app.core.logging import get_logger
from fulfillment.app.core.metrics import reports_built_total
from fulfillment.app.core.settings import Settings, get_settings
from fulfillment.app.schemas import OrderFilter, OrderSnapshot, OrderWithCustomer, SalesReport
from fulfillment.app.services.aggregation import Window, aggregate, filter_orders, resolve_window
from fulfillment.app.services.categories import category_breakdown
from fulfillment.app.services.ranking import rank_top_sellers
from fulfillment.app.services.repositories import OrderRepository, ProductRepository, UserRepository
from fulfillment.app.services.revenue import attribute, average_order_value, completion_rate, is_revenue_eligible

logger = get_logger(__name__)


class ReportService:
    """Builds dashboard reports from the order, product and user repositories."""

    def __init__(
        self,
        orders: OrderRepository,
        products: ProductRepository,
        users: Optional[UserRepository] = None,
        settings: Optional[Settings] = None,
    ):
        self.orders = orders
        self.products = products
        self.users = users
        self.settings = settings or get_settings()

    async def _load_catalog(self, orders: Iterable[OrderSnapshot]) -> Dict[str, Dict[str, Optional[str]]]:
        """One category and one name lookup per distinct product id."""
        seen: Set[str] = set()
        categories: Dict[str, Optional[str]] = {}
        names: Dict[str, Optional[str]] = {}
        for order in orders:
            for item in order.items:
                if item.product_id in seen:
                    continue
                seen.add(item.product_id)
                categories[item.product_id] = await self.products.get_category(item.product_id)
                names[item.product_id] = await self.products.get_name(item.product_id)
        return {"categories": categories, "names": names}

    async def build_report(
        self,
        window: Window,
        now: Optional[datetime] = None,
        seller_id: Optional[str] = None,
        category: Optional[str] = None,
    ) -> SalesReport:
        """
        Build a report for `window`, optionally scoped to one seller and,
        for the top-seller list, to one category.
        """
        now = now or datetime.now()
        bounds = resolve_window(window, now)
        all_orders = await self.orders.list_orders(OrderFilter(seller_id=seller_id))
        in_window = filter_orders(all_orders, window, now)

        revenue = attribute(in_window, self.settings.SELLER_PAYOUT_RATE)
        eligible = [o for o in in_window if is_revenue_eligible(o.status)]
        catalog = await self._load_catalog(eligible)
        fallback = self.settings.FALLBACK_CATEGORY

        orders_by_status: Dict[str, int] = {}
        for order in in_window:
            orders_by_status[order.status.value] = orders_by_status.get(order.status.value, 0) + 1

        report = SalesReport(
            window=window.kind.value,
            start=bounds.start,
            end=bounds.end,
            revenue=revenue,
            average_order_value=average_order_value(revenue),
            completion_rate=completion_rate(revenue.count, len(in_window)),
            orders_in_window=len(in_window),
            orders_by_status=orders_by_status,
            series=aggregate(in_window, window, now),
            category_breakdown=category_breakdown(eligible, catalog["categories"].get, fallback),
            top_sellers=rank_top_sellers(
                eligible,
                category_filter=category,
                limit=self.settings.TOP_SELLERS_LIMIT,
                category_lookup=catalog["categories"].get,
                name_lookup=catalog["names"].get,
                fallback_category=fallback,
            ),
            category_filter=category,
            seller_id=seller_id,
        )
        reports_built_total.labels(window=window.kind.value).inc()
        logger.debug(
            "Sales report built",
            window=window.kind.value,
            seller_id=seller_id,
            orders=len(in_window),
            eligible=revenue.count,
        )
        return report

    async def list_orders_with_customers(self, order_filter: Optional[OrderFilter] = None) -> List[OrderWithCustomer]:
        """Orders annotated with the customer's display name."""
        orders = await self.orders.list_orders(order_filter)
        names: Dict[str, str] = {}
        result = []
        for order in orders:
            if order.customer_id not in names:
                name = await self.users.get_display_name(order.customer_id) if self.users else None
                names[order.customer_id] = name or UNKNOWN_CUSTOMER_NAME
            result.append(OrderWithCustomer(order=order, customer_name=names[order.customer_id]))
        return result
