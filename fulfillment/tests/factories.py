"""
Factories and repository doubles shared by the fulfillment tests.
"""
import asyncio
import itertools
from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from fulfillment.app.core.constants import OrderStatus
from fulfillment.app.models.order import Order, OrderItem
from fulfillment.app.schemas import OrderFilter, OrderItemSnapshot, OrderSnapshot

_order_ids = itertools.count(1)


# --- Snapshot factories (pure-function tests) ---

def make_item(
    product_id: str = "p1",
    quantity: int = 1,
    unit_price: str = "10.00",
    category: Optional[str] = None,
    name: Optional[str] = None,
) -> OrderItemSnapshot:
    return OrderItemSnapshot(
        product_id=product_id,
        quantity=quantity,
        unit_price=Decimal(unit_price),
        category_hint=category,
        name_hint=name,
    )


def make_order(
    status: OrderStatus = OrderStatus.PENDING,
    total: Optional[str] = None,
    items: Iterable[OrderItemSnapshot] = (),
    created_at: Optional[datetime] = None,
    order_id: Optional[str] = None,
    customer_id: str = "c1",
    seller_id: Optional[str] = "s1",
    **timestamps,
) -> OrderSnapshot:
    items = tuple(items)
    if total is None:
        amount = sum((i.line_total for i in items), Decimal("0"))
    else:
        amount = Decimal(total)
    return OrderSnapshot(
        id=order_id or f"o{next(_order_ids)}",
        customer_id=customer_id,
        seller_id=seller_id,
        items=items,
        status=status,
        total_amount=amount,
        created_at=created_at or datetime(2025, 3, 1, 12, 0),
        **timestamps,
    )


# --- In-memory repositories ---

class InMemoryOrderRepository:
    """Order repository double.

    gates: order_id -> asyncio.Event; apply_transition waits on it.
    fail_with: exception raised by apply_transition.
    delay: seconds apply_transition sleeps before writing.
    report_no_update: apply_transition returns False without writing.
    """

    def __init__(self, orders: Iterable[OrderSnapshot] = ()):
        self._orders: Dict[str, OrderSnapshot] = {o.id: o for o in orders}
        self.writes: List[tuple] = []
        self.gates: Dict[str, asyncio.Event] = {}
        self.fail_with: Optional[Exception] = None
        self.delay: float = 0
        self.report_no_update = False

    def stored(self, order_id: str) -> OrderSnapshot:
        return self._orders[order_id]

    async def list_orders(self, order_filter: Optional[OrderFilter] = None) -> List[OrderSnapshot]:
        f = order_filter or OrderFilter()
        result = []
        for order in self._orders.values():
            if f.seller_id is not None and order.seller_id != f.seller_id:
                continue
            if f.customer_id is not None and order.customer_id != f.customer_id:
                continue
            if f.statuses and order.status not in f.statuses:
                continue
            result.append(order)
        return result

    async def get_order(self, order_id: str) -> Optional[OrderSnapshot]:
        return self._orders.get(order_id)

    async def apply_transition(self, order_id, new_status, timestamp_field, expected_status=None) -> bool:
        self.writes.append((order_id, new_status, timestamp_field))
        gate = self.gates.get(order_id)
        if gate is not None:
            await gate.wait()
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_with is not None:
            raise self.fail_with
        if self.report_no_update:
            return False
        order = self._orders.get(order_id)
        if order is None or (expected_status is not None and order.status != expected_status):
            return False
        now = datetime.now()
        updates = {"status": new_status, "updated_at": now}
        if getattr(order, timestamp_field) is None:
            updates[timestamp_field] = now
        self._orders[order_id] = order.model_copy(update=updates)
        return True


class InMemoryProductRepository:
    def __init__(self, products: Optional[Dict[str, Dict[str, str]]] = None):
        self.products = products or {}
        self.calls: List[str] = []

    async def get_category(self, product_id: str) -> Optional[str]:
        self.calls.append(product_id)
        return self.products.get(product_id, {}).get("category")

    async def get_name(self, product_id: str) -> Optional[str]:
        return self.products.get(product_id, {}).get("name")


class InMemoryUserRepository:
    def __init__(self, names: Optional[Dict[str, str]] = None):
        self.names = names or {}

    async def get_display_name(self, user_id: str) -> Optional[str]:
        return self.names.get(user_id)


async def persist_order(
    session: AsyncSession,
    order_id: str,
    status: OrderStatus = OrderStatus.PENDING,
    items: Iterable[dict] = (),
    customer_id: str = "c1",
    seller_id: str = "s1",
    created_at: Optional[datetime] = None,
    **columns,
) -> Order:
    """Insert an order row with its items; total_amount is the sum of the lines."""
    rows = [
        OrderItem(
            position=i,
            product_id=item["product_id"],
            quantity=item["quantity"],
            unit_price=Decimal(item["unit_price"]),
            category_hint=item.get("category_hint"),
            name_hint=item.get("name_hint"),
        )
        for i, item in enumerate(items)
    ]
    total = sum((r.unit_price * r.quantity for r in rows), Decimal("0"))
    order = Order(
        id=order_id,
        customer_id=customer_id,
        seller_id=seller_id,
        status=status.value,
        total_amount=total,
        created_at=created_at or datetime(2025, 3, 8, 10, 0),
        items=rows,
        **columns,
    )
    session.add(order)
    await session.commit()
    return order
