from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from fulfillment.app.core.constants import ZERO, OrderStatus


# --- Orders (read-only snapshots handed to the reporting functions) ---
class OrderItemSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True, from_attributes=True)

    product_id: str
    quantity: int
    # Price captured at checkout, never re-read from the catalog
    unit_price: Decimal
    category_hint: Optional[str] = None
    name_hint: Optional[str] = None

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


class OrderSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: str
    customer_id: str
    seller_id: Optional[str] = None
    items: Tuple[OrderItemSnapshot, ...] = ()
    status: OrderStatus
    total_amount: Decimal
    created_at: datetime
    updated_at: Optional[datetime] = None
    confirmed_at: Optional[datetime] = None
    packed_at: Optional[datetime] = None
    shipped_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None


class OrderFilter(BaseModel):
    """Criteria understood by OrderRepository.list_orders."""
    model_config = ConfigDict(frozen=True)

    seller_id: Optional[str] = None
    customer_id: Optional[str] = None
    statuses: Optional[Tuple[OrderStatus, ...]] = None
    created_from: Optional[datetime] = None
    created_to: Optional[datetime] = None


class OrderWithCustomer(BaseModel):
    order: OrderSnapshot
    customer_name: str


# --- Reporting ---
class RevenueSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    gross: Decimal = ZERO
    net: Decimal = ZERO
    platform_fee: Decimal = ZERO
    count: int = 0


class SeriesBucket(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: str            # "13" for hourly buckets, ISO date for daily ones
    label: str          # "13:00" / "05/03"
    start: datetime
    revenue: Decimal = ZERO
    order_count: int = 0


class CategoryShare(BaseModel):
    category: str
    order_count: int


class TopSeller(BaseModel):
    product_id: str
    name: str
    category: str
    units_sold: int
    total_revenue: Decimal
    average_unit_price: Decimal


class SalesReport(BaseModel):
    window: str
    start: datetime
    end: datetime
    revenue: RevenueSummary
    average_order_value: Decimal = ZERO
    completion_rate: float = 0.0
    orders_in_window: int = 0
    orders_by_status: Dict[str, int] = Field(default_factory=dict)
    series: List[SeriesBucket] = Field(default_factory=list)
    category_breakdown: List[CategoryShare] = Field(default_factory=list)
    top_sellers: List[TopSeller] = Field(default_factory=list)
    category_filter: Optional[str] = None
    seller_id: Optional[str] = None
