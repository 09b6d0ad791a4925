# fulfillment/app/services/aggregation.py
"""
Time-bucketed revenue / order-count series.

Series are dense: every hour (24h window) or calendar day (7d, 30d, custom)
of the window is present even when nothing happened in it, because charts
downstream assume an ordered, gap-free sequence.

Buckets follow local wall-clock time. Naive datetimes are taken as local
time already; aware ones are converted to the timezone of `now`.
"""
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, tzinfo
from decimal import Decimal
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

from fulfillment.app.core.constants import ZERO
from fulfillment.app.core.logging import get_logger
from fulfillment.app.schemas import OrderSnapshot, SeriesBucket
from fulfillment.app.services.revenue import is_revenue_eligible

logger = get_logger(__name__)


class WindowKind(str, Enum):
    LAST_24_HOURS = "24h"
    LAST_7_DAYS = "7d"
    LAST_30_DAYS = "30d"
    CUSTOM = "custom"


@dataclass(frozen=True)
class Window:
    kind: WindowKind
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @classmethod
    def last_24_hours(cls) -> "Window":
        return cls(WindowKind.LAST_24_HOURS)

    @classmethod
    def last_7_days(cls) -> "Window":
        return cls(WindowKind.LAST_7_DAYS)

    @classmethod
    def last_30_days(cls) -> "Window":
        return cls(WindowKind.LAST_30_DAYS)

    @classmethod
    def custom(cls, start_date: date, end_date: date) -> "Window":
        return cls(WindowKind.CUSTOM, start_date, end_date)

    @classmethod
    def parse(cls, value: str, start_date: Optional[date] = None, end_date: Optional[date] = None) -> "Window":
        """Build a window from its short name ("24h", "7d", "30d", "custom")."""
        kind = WindowKind(value.strip().lower())
        if kind == WindowKind.CUSTOM:
            if start_date is None or end_date is None:
                raise ValueError("custom window requires start_date and end_date")
            return cls.custom(start_date, end_date)
        return cls(kind)


@dataclass(frozen=True)
class WindowBounds:
    """Resolved window: [start, end) plus the start of every bucket in order."""
    start: datetime
    end: datetime
    hourly: bool
    bucket_starts: Tuple[datetime, ...] = field(default=())


DAYS_BY_KIND = {
    WindowKind.LAST_7_DAYS: 7,
    WindowKind.LAST_30_DAYS: 30,
}


def _midnight(day: date, tz: Optional[tzinfo]) -> datetime:
    return datetime(day.year, day.month, day.day, tzinfo=tz)


def _daily_bounds(first: date, last: date, tz: Optional[tzinfo]) -> WindowBounds:
    if last < first:
        logger.debug("Custom window ends before it starts", start=first.isoformat(), end=last.isoformat())
        empty = _midnight(first, tz)
        return WindowBounds(empty, empty, hourly=False)
    days = (last - first).days + 1
    starts = tuple(_midnight(first + timedelta(days=i), tz) for i in range(days))
    return WindowBounds(starts[0], _midnight(last + timedelta(days=1), tz), hourly=False, bucket_starts=starts)


def resolve_window(window: Window, now: Optional[datetime] = None) -> WindowBounds:
    """Compute the bucket layout of `window` relative to `now`."""
    now = now or datetime.now()
    tz = now.tzinfo

    if window.kind == WindowKind.LAST_24_HOURS:
        current_hour = now.replace(minute=0, second=0, microsecond=0)
        starts = tuple(current_hour - timedelta(hours=23 - i) for i in range(24))
        return WindowBounds(starts[0], current_hour + timedelta(hours=1), hourly=True, bucket_starts=starts)

    if window.kind in DAYS_BY_KIND:
        today = now.date()
        first = today - timedelta(days=DAYS_BY_KIND[window.kind] - 1)
        return _daily_bounds(first, today, tz)

    if window.start_date is None or window.end_date is None:
        raise ValueError("custom window requires start_date and end_date")
    return _daily_bounds(window.start_date, window.end_date, tz)


def completion_timestamp(order: OrderSnapshot) -> Optional[datetime]:
    """delivered_at, else updated_at, else created_at."""
    return order.delivered_at or order.updated_at or order.created_at


def _localize(ts: datetime, tz: Optional[tzinfo]) -> datetime:
    if tz is None:
        return ts.astimezone().replace(tzinfo=None) if ts.tzinfo is not None else ts
    return ts.astimezone(tz) if ts.tzinfo is not None else ts.replace(tzinfo=tz)


def _bucket_start(ts: datetime, hourly: bool) -> datetime:
    if hourly:
        return ts.replace(minute=0, second=0, microsecond=0)
    return ts.replace(hour=0, minute=0, second=0, microsecond=0)


def _in_bounds(ts: datetime, bounds: WindowBounds) -> bool:
    return bounds.start <= ts < bounds.end


def filter_orders(
    orders: Iterable[OrderSnapshot],
    window: Window,
    now: Optional[datetime] = None,
) -> List[OrderSnapshot]:
    """Orders whose completion timestamp falls inside the window, input order kept."""
    bounds = resolve_window(window, now)
    tz = bounds.start.tzinfo
    selected = []
    for order in orders:
        ts = completion_timestamp(order)
        if ts is not None and _in_bounds(_localize(ts, tz), bounds):
            selected.append(order)
    return selected


def _bucket_key(start: datetime, hourly: bool) -> Tuple[str, str]:
    if hourly:
        return str(start.hour), f"{start.hour:02d}:00"
    return start.date().isoformat(), start.strftime("%d/%m")


def aggregate(
    orders: Iterable[OrderSnapshot],
    window: Window,
    now: Optional[datetime] = None,
) -> List[SeriesBucket]:
    """
    Build the dense series for `window`.

    revenue: total_amount of revenue-eligible orders in the bucket.
    order_count: every order in the bucket, eligible or not.
    """
    bounds = resolve_window(window, now)
    tz = bounds.start.tzinfo

    totals: Dict[datetime, List] = {start: [ZERO, 0] for start in bounds.bucket_starts}
    for order in orders:
        ts = completion_timestamp(order)
        if ts is None:
            continue
        local = _localize(ts, tz)
        if not _in_bounds(local, bounds):
            continue
        slot = totals.get(_bucket_start(local, bounds.hourly))
        if slot is None:
            continue
        if is_revenue_eligible(order.status):
            slot[0] += order.total_amount
        slot[1] += 1

    series = []
    for start in bounds.bucket_starts:
        key, label = _bucket_key(start, bounds.hourly)
        revenue, count = totals[start]
        series.append(SeriesBucket(key=key, label=label, start=start, revenue=Decimal(revenue), order_count=count))
    return series
