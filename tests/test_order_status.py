import datetime

import pytest

from ardenOrders.utils.order_status import (
    URGENT_STATUSES,
    DerivedStatus,
    days_left,
    derive_status,
    display_label,
    is_urgent,
    urgency_band,
)

TODAY = datetime.date(2026, 10, 18)


def in_days(n):
    return TODAY + datetime.timedelta(days=n)


@pytest.mark.parametrize(
    "due, delivered, status, expected",
    [
        (in_days(-5), None, "DELIVERED", DerivedStatus.COMPLETE),
        (in_days(-5), None, "delivered", DerivedStatus.COMPLETE),
        (in_days(-5), TODAY, "CANCELLED", DerivedStatus.CANCELLED),
        (in_days(-5), in_days(-6), "SEWING", DerivedStatus.COMPLETE),
        (None, None, "NEW", DerivedStatus.NO_DUE_DATE),
        (TODAY, None, "NEW", DerivedStatus.DUE_TODAY),
        (in_days(-1), None, "CUTTING", DerivedStatus.OVERDUE),
        (in_days(1), None, "NEW", DerivedStatus.DUE_SOON),
        (in_days(3), None, "NEW", DerivedStatus.DUE_SOON),
        (in_days(4), None, "NEW", DerivedStatus.IN_PROGRESS),
        (in_days(30), None, None, DerivedStatus.IN_PROGRESS),
    ],
)
def test_derive_status_precedence(due, delivered, status, expected):
    assert derive_status(due, delivered, status, today=TODAY) == expected


def test_derive_status_truncates_datetimes():
    due = datetime.datetime(2026, 10, 18, 23, 59)
    now = datetime.datetime(2026, 10, 18, 0, 1)

    assert derive_status(due, None, "NEW", today=now) == DerivedStatus.DUE_TODAY


def test_derive_status_defaults_to_local_today(monkeypatch):
    from ardenOrders.utils import order_status

    monkeypatch.setattr(order_status.timezone, "localdate", lambda: TODAY)

    assert derive_status(in_days(2), None, "NEW") == DerivedStatus.DUE_SOON


def test_days_left():
    assert days_left(None, TODAY) is None
    assert days_left(in_days(5), TODAY) == 5
    assert days_left(in_days(-2), TODAY) == -2


def test_urgent_set():
    assert URGENT_STATUSES == {DerivedStatus.DUE_TODAY, DerivedStatus.OVERDUE, DerivedStatus.DUE_SOON}
    assert is_urgent(DerivedStatus.OVERDUE)
    assert not is_urgent(DerivedStatus.IN_PROGRESS)
    assert not is_urgent(DerivedStatus.NO_DUE_DATE)


@pytest.mark.parametrize(
    "status, expected",
    [("CUTTING", "Cutting"), ("sewing", "Sewing"), ("FINISHING", "Finishing"), ("APPROVED", "In progress")],
)
def test_display_label_refines_in_progress(status, expected):
    assert display_label(DerivedStatus.IN_PROGRESS, status) == expected


def test_display_label_leaves_other_states_alone():
    assert display_label(DerivedStatus.OVERDUE, "CUTTING") == "Overdue"


@pytest.mark.parametrize(
    "remaining, band, text",
    [
        (None, "none", "-"),
        (10, "calm", "10 days left"),
        (5, "watch", "5 days left"),
        (3, "soon", "3 days left"),
        (0, "today", "Today"),
        (-2, "late", "2 days late"),
    ],
)
def test_urgency_band(remaining, band, text):
    result = urgency_band(remaining)
    assert (result.band, result.text) == (band, text)
