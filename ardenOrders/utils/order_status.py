"""
Live status of an order, derived from its persisted fields on every read.

Nothing here touches the database or raises: every combination of inputs
maps to exactly one DerivedStatus.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime

from django.db import models
from django.utils import timezone

from ardenOrders.models import OrderStatus

DUE_SOON_DAYS = 3


class DerivedStatus(models.TextChoices):
    COMPLETE = "COMPLETE", "Complete"
    CANCELLED = "CANCELLED", "Cancelled"
    NO_DUE_DATE = "NO_DUE_DATE", "No due date"
    DUE_TODAY = "DUE_TODAY", "Due today"
    OVERDUE = "OVERDUE", "Overdue"
    DUE_SOON = "DUE_SOON", "Due soon"
    IN_PROGRESS = "IN_PROGRESS", "In progress"


URGENT_STATUSES = frozenset({DerivedStatus.DUE_TODAY, DerivedStatus.OVERDUE, DerivedStatus.DUE_SOON})

# Production stages that refine the generic "In progress" label.
STAGE_LABELS = {
    OrderStatus.CUTTING: "Cutting",
    OrderStatus.SEWING: "Sewing",
    OrderStatus.FINISHING: "Finishing",
}


def _as_date(value) -> date | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    return value


def _normalize_status(status) -> str:
    return str(status or "").strip().upper()


def days_left(due_date, today: date | None = None) -> int | None:
    """Whole calendar days from ``today`` until ``due_date``; negative once late."""
    due = _as_date(due_date)
    if due is None:
        return None
    today = _as_date(today) or timezone.localdate()
    return (due - today).days


def derive_status(due_date, actual_delivery_date, status, today: date | None = None) -> DerivedStatus:
    base = _normalize_status(status)
    if base == OrderStatus.DELIVERED:
        return DerivedStatus.COMPLETE
    if base == OrderStatus.CANCELLED:
        return DerivedStatus.CANCELLED
    if actual_delivery_date:
        return DerivedStatus.COMPLETE

    remaining = days_left(due_date, today)
    if remaining is None:
        return DerivedStatus.NO_DUE_DATE
    if remaining == 0:
        return DerivedStatus.DUE_TODAY
    if remaining < 0:
        return DerivedStatus.OVERDUE
    if remaining <= DUE_SOON_DAYS:
        return DerivedStatus.DUE_SOON
    return DerivedStatus.IN_PROGRESS


def derive_for_order(order, today: date | None = None) -> DerivedStatus:
    return derive_status(order.due_date, order.actual_delivery_date, order.status, today)


def is_urgent(derived) -> bool:
    return derived in URGENT_STATUSES


def display_label(derived, status=None) -> str:
    """Human label; in-progress orders show their production stage when known."""
    if derived == DerivedStatus.IN_PROGRESS:
        stage = STAGE_LABELS.get(_normalize_status(status))
        if stage:
            return stage
    return DerivedStatus(derived).label


@dataclass(frozen=True)
class UrgencyBand:
    band: str
    text: str


def urgency_band(remaining: int | None) -> UrgencyBand:
    """Bucket a days-left value for highlighting."""
    if remaining is None:
        return UrgencyBand("none", "-")
    if remaining > 7:
        return UrgencyBand("calm", f"{remaining} days left")
    if remaining > 3:
        return UrgencyBand("watch", f"{remaining} days left")
    if remaining > 0:
        return UrgencyBand("soon", f"{remaining} days left")
    if remaining == 0:
        return UrgencyBand("today", "Today")
    return UrgencyBand("late", f"{abs(remaining)} days late")
