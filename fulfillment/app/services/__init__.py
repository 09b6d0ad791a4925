# fulfillment/app/services/__init__.py
"""
Services layer for order fulfillment.
Pure reporting functions plus the guarded dispatcher; no transport concerns.
"""

from fulfillment.app.services.state_machine import (
    TRANSITIONS,
    available_actions,
    is_terminal,
    next_status,
    plan_transition,
)
from fulfillment.app.services.authorization import (
    Actor,
    ActorRole,
    authorize,
    permitted_actions,
)
from fulfillment.app.services.dispatcher import OrderDispatcher
from fulfillment.app.services.revenue import (
    attribute,
    average_order_value,
    completion_rate,
    is_revenue_eligible,
)
from fulfillment.app.services.aggregation import (
    Window,
    WindowKind,
    aggregate,
    completion_timestamp,
    filter_orders,
    resolve_window,
)
from fulfillment.app.services.categories import (
    category_breakdown,
    normalize_category,
    resolve_dominant_category,
    resolve_item_category,
)
from fulfillment.app.services.ranking import rank_top_sellers
from fulfillment.app.services.repositories import (
    OrderRepository,
    ProductRepository,
    SqlOrderRepository,
    SqlProductRepository,
    SqlUserRepository,
    UserRepository,
)
from fulfillment.app.services.reports import ReportService

__all__ = [
    "TRANSITIONS",
    "available_actions",
    "is_terminal",
    "next_status",
    "plan_transition",
    "Actor",
    "ActorRole",
    "authorize",
    "permitted_actions",
    "OrderDispatcher",
    "attribute",
    "average_order_value",
    "completion_rate",
    "is_revenue_eligible",
    "Window",
    "WindowKind",
    "aggregate",
    "completion_timestamp",
    "filter_orders",
    "resolve_window",
    "category_breakdown",
    "normalize_category",
    "resolve_dominant_category",
    "resolve_item_category",
    "rank_top_sellers",
    "OrderRepository",
    "ProductRepository",
    "UserRepository",
    "SqlOrderRepository",
    "SqlProductRepository",
    "SqlUserRepository",
    "ReportService",
]
