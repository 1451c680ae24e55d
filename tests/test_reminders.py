import datetime
from decimal import Decimal

import pytest
import requests

from ardenOrders.models import OrderStatus
from ardenOrders.utils import reminders
from ardenOrders.utils.reminders import (
    TelegramNotifier,
    build_messages,
    collect_reminders,
    dispatch_reminders,
    format_money,
    format_reminder_message,
)
from tests.factories import CustomerFactory, OrderFactory

TODAY = datetime.date(2026, 10, 18)


def in_days(n):
    return TODAY + datetime.timedelta(days=n)


class FakeResponse:
    def __init__(self, status_code=200):
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


@pytest.mark.django_db
def test_collect_reminders_picks_urgent_open_orders():
    lan = CustomerFactory(name="Lan", phone="090")
    overdue = OrderFactory(code="OVERDUE", customer=lan, due_date=in_days(-2))
    today = OrderFactory(code="TODAY", customer=lan, due_date=TODAY)
    soon = OrderFactory(code="SOON", customer=lan, due_date=in_days(3))
    OrderFactory(code="LATER", due_date=in_days(4))
    OrderFactory(code="NODATE", due_date=None)
    OrderFactory(code="SHIPPED", due_date=TODAY, status=OrderStatus.DELIVERED)
    OrderFactory(code="DROPPED", due_date=TODAY, status=OrderStatus.CANCELLED)
    OrderFactory(code="HANDED", due_date=TODAY, actual_delivery_date=in_days(-1))

    entries = collect_reminders(TODAY)

    assert [e.order_id for e in entries] == [overdue.pk, today.pk, soon.pk]
    assert [e.days_left for e in entries] == [-2, 0, 3]
    assert entries[0].derived_status == "OVERDUE"
    assert entries[0].customer_name == "Lan"
    assert entries[0].customer_phone == "090"


@pytest.mark.django_db
def test_entry_amounts():
    OrderFactory(
        code="A1",
        due_date=TODAY,
        total_amount=Decimal("500000"),
        deposit_amount=Decimal("200000"),
        main_image_url="https://img.example/a1.jpg",
    )

    entry = collect_reminders(TODAY)[0]

    assert entry.display_code == "A1"
    assert entry.remaining_amount == Decimal("300000")
    assert entry.image_url == "https://img.example/a1.jpg"


def test_format_money_uses_dot_grouping():
    assert format_money(Decimal("1250000")) == "1.250.000 ₫"
    assert format_money(None) == "0 ₫"


@pytest.mark.django_db
def test_message_lists_each_order():
    OrderFactory(code="A1", customer=CustomerFactory(name="Lan <VIP>"), due_date=in_days(-1))
    OrderFactory(code="B2", due_date=TODAY)

    text = format_reminder_message(collect_reminders(TODAY), TODAY)

    assert text.startswith("<b>Upcoming order deadlines</b> (18/10/2026)")
    assert "<b>Order #A1</b>" in text
    assert "Lan &lt;VIP&gt;" in text
    assert "1 days overdue" in text
    assert "DUE TODAY!!!" in text


@pytest.mark.django_db
def test_orders_with_images_are_sent_as_photos():
    OrderFactory(code="A1", due_date=in_days(-1))
    OrderFactory(code="B2", due_date=TODAY, main_image_url="https://img.example/b2.jpg")
    OrderFactory(code="C3", due_date=in_days(1))

    messages = build_messages(collect_reminders(TODAY), TODAY)

    assert len(messages) == 2
    first_text, first_photo = messages[0]
    assert first_photo == "https://img.example/b2.jpg"
    assert "#A1" in first_text and "#B2" in first_text
    assert messages[1][1] is None
    assert "#C3" in messages[1][0]


def test_notifier_keeps_going_when_one_chat_fails(monkeypatch):
    calls = []

    def fake_post(url, json=None, timeout=None):
        calls.append((url, json, timeout))
        if json["chat_id"] == "bad":
            raise requests.ConnectionError("unreachable")
        return FakeResponse()

    monkeypatch.setattr(reminders.requests, "post", fake_post)

    results = TelegramNotifier("TOKEN", ["bad", 123]).send("hello")

    assert results == {"bad": False, "123": True}
    assert calls[1][0] == "https://api.telegram.org/botTOKEN/sendMessage"
    assert calls[1][1] == {"chat_id": "123", "parse_mode": "HTML", "text": "hello"}
    assert calls[1][2] == 10


def test_notifier_http_error_is_logged_not_raised(monkeypatch, caplog):
    monkeypatch.setattr(reminders.requests, "post", lambda url, json=None, timeout=None: FakeResponse(403))

    results = TelegramNotifier("TOKEN", ["42"]).send("hi", photo="https://img.example/x.jpg")

    assert results == {"42": False}
    assert "sendPhoto" in caplog.text


def test_notifier_reads_settings(settings):
    settings.TELEGRAM_TOKEN = "abc"
    settings.TELEGRAM_CHAT_IDS = ["1", "-2"]

    notifier = TelegramNotifier()

    assert notifier.configured
    assert notifier.chat_ids == ["1", "-2"]
    assert not TelegramNotifier(token="", chat_ids=[]).configured


@pytest.mark.django_db
def test_dispatch_sends_every_message(monkeypatch):
    OrderFactory(code="A1", due_date=TODAY)
    sent = []
    monkeypatch.setattr(reminders.requests, "post", lambda url, json=None, timeout=None: sent.append(json) or FakeResponse())

    count = dispatch_reminders(collect_reminders(TODAY), TelegramNotifier("T", ["1"]), TODAY)

    assert count == 1
    assert "#A1" in sent[0]["text"]


def test_nothing_to_send_without_entries(monkeypatch):
    sent = []
    monkeypatch.setattr(reminders.requests, "post", lambda url, json=None, timeout=None: sent.append(json) or FakeResponse())

    assert build_messages([], TODAY) == []
    assert dispatch_reminders([], TelegramNotifier("T", ["1"]), TODAY) == 0
    assert sent == []
