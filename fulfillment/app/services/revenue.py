"""
Revenue attribution: gross order value of completed orders, split into the
seller payout and the platform fee.
"""
from decimal import Decimal
from typing import Iterable, Optional, Union

from fulfillment.app.core.constants import COMPLETED_ORDER_STATUSES, ZERO, OrderStatus
from fulfillment.app.core.settings import get_settings
from fulfillment.app.schemas import OrderSnapshot, RevenueSummary


def is_revenue_eligible(status: Union[OrderStatus, str]) -> bool:
    """Only delivered/completed orders earn revenue, whatever the payment method or age."""
    try:
        return OrderStatus(status) in COMPLETED_ORDER_STATUSES
    except ValueError:
        return False


def attribute(orders: Iterable[OrderSnapshot], payout_rate: Optional[Union[Decimal, float, str]] = None) -> RevenueSummary:
    """
    Sum the revenue of eligible orders.

    net = gross * payout_rate, platform_fee = gross * (1 - payout_rate),
    count = number of eligible orders. Empty input gives all zeros.
    """
    if payout_rate is None:
        rate = get_settings().SELLER_PAYOUT_RATE
    else:
        rate = Decimal(str(payout_rate))
        if rate < 0 or rate > 1:
            raise ValueError(f"payout_rate must be between 0 and 1, got {rate}")
    gross = ZERO
    count = 0
    for order in orders:
        if is_revenue_eligible(order.status):
            gross += order.total_amount
            count += 1
    return RevenueSummary(
        gross=gross,
        net=gross * rate,
        platform_fee=gross * (Decimal("1") - rate),
        count=count,
    )


def average_order_value(summary: RevenueSummary) -> Decimal:
    """gross / count, defined as 0 when there are no eligible orders."""
    if summary.count == 0:
        return ZERO
    return summary.gross / summary.count


def completion_rate(eligible_count: int, total_count: int) -> float:
    """Percentage of orders that reached a revenue-eligible status."""
    if total_count <= 0:
        return 0.0
    return round(eligible_count / total_count * 100, 2)
