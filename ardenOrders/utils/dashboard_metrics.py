from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from typing import Dict

from django.core.cache import cache
from django.db.models import Sum
from django.utils import timezone

from ardenOrders.errors import PreconditionError
from ardenOrders.models import Customer, Order, OrderItem, OrderStatus
from ardenOrders.utils.order_status import DerivedStatus, derive_for_order

STATS_CACHE_KEY = "dashboard:order_stats"
CACHE_TIMEOUT = 300  # 5 minutes
DEFAULT_PERIOD = "month"

# Orders in these states no longer count as active work.
FINISHED_STATUSES = frozenset({OrderStatus.DONE, OrderStatus.DELIVERED, OrderStatus.CANCELLED})


@dataclass
class DashboardStats:
    period: str
    period_start: date
    customers: int = 0
    orders: int = 0
    active_orders: int = 0
    overdue_orders: int = 0
    upcoming_orders: int = 0
    total_quantity: int = 0
    period_revenue: Decimal = Decimal("0.00")
    month_revenue: Decimal = Decimal("0.00")
    year_revenue: Decimal = Decimal("0.00")
    status_counts: Dict[str, int] = field(default_factory=dict)

    def as_dict(self) -> dict:
        data = asdict(self)
        data["period_start"] = self.period_start.isoformat()
        for key in ("period_revenue", "month_revenue", "year_revenue"):
            data[key] = str(data[key])
        return data


def period_start(period: str, today: date) -> date:
    """First order date counted for ``period``; a week is the last 7 days including today."""
    if period == "today":
        return today
    if period == "week":
        return today - timedelta(days=6)
    if period == "month":
        return today.replace(day=1)
    if period == "year":
        return today.replace(month=1, day=1)
    raise PreconditionError(f"unknown period: {period!r}")


def _revenue_since(start: date) -> Decimal:
    total = Order.objects.filter(order_date__gte=start).aggregate(total=Sum("total_amount"))["total"]
    return total or Decimal("0.00")


def get_order_stats(period: str = DEFAULT_PERIOD, today: date | None = None) -> DashboardStats:
    """
    Headline numbers for the order desk.

    Period figures (orders, status counts, planned quantity, period revenue)
    cover orders dated from the period start. Active, overdue and upcoming
    counts always describe the whole open book, as do month and year revenue.
    """
    period = (period or DEFAULT_PERIOD).strip().lower()
    today = today or timezone.localdate()
    start = period_start(period, today)

    cache_key = f"{STATS_CACHE_KEY}:{period}:{today.isoformat()}"
    cached = cache.get(cache_key)
    if cached:
        return cached

    stats = DashboardStats(period=period, period_start=start)
    stats.customers = Customer.objects.count()

    in_period = Order.objects.filter(order_date__gte=start)
    quantities = dict(
        OrderItem.objects.filter(order__in=in_period)
        .values_list("order_id")
        .annotate(planned=Sum("quantity"))
    )
    for status in in_period.values_list("status", flat=True):
        stats.status_counts[status] = stats.status_counts.get(status, 0) + 1
    stats.orders = sum(1 for planned in quantities.values() if planned)
    stats.total_quantity = sum(quantities.values())
    stats.period_revenue = _revenue_since(start)
    stats.month_revenue = _revenue_since(today.replace(day=1))
    stats.year_revenue = _revenue_since(today.replace(month=1, day=1))

    open_orders = Order.objects.exclude(status__in=FINISHED_STATUSES).only(
        "due_date", "actual_delivery_date", "status"
    )
    for order in open_orders:
        derived = derive_for_order(order, today)
        if derived == DerivedStatus.COMPLETE:
            continue
        stats.active_orders += 1
        if derived == DerivedStatus.OVERDUE:
            stats.overdue_orders += 1
        elif derived in (DerivedStatus.DUE_TODAY, DerivedStatus.DUE_SOON):
            stats.upcoming_orders += 1

    cache.set(cache_key, stats, CACHE_TIMEOUT)
    return stats
