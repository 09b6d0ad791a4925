"""
Shared constants for the fulfillment core.
"""
from decimal import Decimal
from enum import Enum


# ---------------------------------------------------------------------------
# Order statuses and actions
# ---------------------------------------------------------------------------
class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PACKED = "packed"
    SHIPPING = "shipping"
    DELIVERED = "delivered"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class OrderAction(str, Enum):
    CONFIRM = "confirm"
    PACK = "pack"
    HANDOVER = "handover"
    DELIVER = "deliver"
    CANCEL = "cancel"


# `completed` is an alias of `delivered` for revenue purposes
COMPLETED_ORDER_STATUSES = frozenset({OrderStatus.DELIVERED, OrderStatus.COMPLETED})

TERMINAL_ORDER_STATUSES = frozenset({
    OrderStatus.DELIVERED,
    OrderStatus.COMPLETED,
    OrderStatus.CANCELLED,
})

# ---------------------------------------------------------------------------
# Lifecycle timestamp columns
# ---------------------------------------------------------------------------
CONFIRMED_AT = "confirmed_at"
PACKED_AT = "packed_at"
SHIPPED_AT = "shipped_at"
DELIVERED_AT = "delivered_at"
CANCELLED_AT = "cancelled_at"

LIFECYCLE_TIMESTAMP_FIELDS = (CONFIRMED_AT, PACKED_AT, SHIPPED_AT, DELIVERED_AT, CANCELLED_AT)

# ---------------------------------------------------------------------------
# Decimal helpers
# ---------------------------------------------------------------------------
ZERO = Decimal("0")

# ---------------------------------------------------------------------------
# Reporting defaults
# ---------------------------------------------------------------------------
DEFAULT_PAYOUT_RATE = Decimal("0.85")
DEFAULT_TOP_SELLERS_LIMIT = 10
FALLBACK_CATEGORY = "Other"
# Placeholder strings that leak out of loosely typed clients
UNRESOLVED_CATEGORY_VALUES = frozenset({"", "null", "undefined"})
UNKNOWN_CUSTOMER_NAME = "Unknown customer"
