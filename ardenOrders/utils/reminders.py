"""
Due-date reminders for the workshop chat.

``collect_reminders`` picks every open order the status deriver marks as
urgent (due soon, due today, overdue); ``dispatch_reminders`` renders them as
Telegram HTML and posts them through ``TelegramNotifier``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from html import escape

import requests
from django.conf import settings
from django.utils import timezone

from ardenOrders.models import TERMINAL_STATUSES, Order
from ardenOrders.utils.order_status import DUE_SOON_DAYS, derive_for_order, days_left, is_urgent

logger = logging.getLogger(__name__)

TELEGRAM_API = "https://api.telegram.org/bot{token}/{method}"
REQUEST_TIMEOUT = 10


@dataclass
class ReminderEntry:
    order_id: int
    display_code: str
    customer_name: str
    customer_phone: str | None
    due_date: date
    days_left: int
    derived_status: str
    total_amount: Decimal
    deposit_amount: Decimal
    remaining_amount: Decimal
    image_url: str | None = None


def collect_reminders(today: date | None = None) -> list[ReminderEntry]:
    today = today or timezone.localdate()
    horizon = today + timedelta(days=DUE_SOON_DAYS)
    candidates = (
        Order.objects.select_related("customer")
        .exclude(status__in=TERMINAL_STATUSES)
        .filter(actual_delivery_date__isnull=True, due_date__isnull=False, due_date__lte=horizon)
        .order_by("due_date", "pk")
    )

    entries = []
    for order in candidates:
        derived = derive_for_order(order, today)
        if not is_urgent(derived):
            continue
        entries.append(
            ReminderEntry(
                order_id=order.pk,
                display_code=order.display_code,
                customer_name=order.customer.name,
                customer_phone=order.customer.phone,
                due_date=order.due_date,
                days_left=days_left(order.due_date, today),
                derived_status=str(derived),
                total_amount=order.total_amount,
                deposit_amount=order.deposit_amount,
                remaining_amount=order.remaining_amount,
                image_url=order.main_image_url or None,
            )
        )
    return entries


def format_money(amount) -> str:
    return f"{int(amount or 0):,}".replace(",", ".") + " ₫"


def _due_text(remaining: int) -> str:
    if remaining == 0:
        return "DUE TODAY!!!"
    if remaining > 0:
        return f"{remaining} days left"
    return f"{abs(remaining)} days overdue"


def format_entry(entry: ReminderEntry) -> str:
    return (
        f"<b>Order #{escape(entry.display_code)}</b>\n"
        f"Customer: {escape(entry.customer_name or 'Unknown')}\n"
        f"Phone: {escape(entry.customer_phone or '-')}\n"
        f"Due: {entry.due_date:%d/%m/%Y} → <b>{_due_text(entry.days_left)}</b>\n"
        f"Total: {format_money(entry.total_amount)}\n"
        f"Deposit: {format_money(entry.deposit_amount)}\n"
        f"Remaining: {format_money(entry.remaining_amount)}\n\n"
    )


def format_reminder_message(entries, today: date | None = None) -> str:
    today = today or timezone.localdate()
    header = f"<b>Upcoming order deadlines</b> ({today:%d/%m/%Y})\n\n"
    return header + "".join(format_entry(entry) for entry in entries)


class TelegramNotifier:
    """Posts messages to every configured chat; one chat failing never stops the others."""

    def __init__(self, token: str | None = None, chat_ids=None, timeout: int = REQUEST_TIMEOUT):
        self.token = token if token is not None else getattr(settings, "TELEGRAM_TOKEN", "")
        if chat_ids is None:
            chat_ids = getattr(settings, "TELEGRAM_CHAT_IDS", [])
        self.chat_ids = [str(chat_id) for chat_id in chat_ids]
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.token and self.chat_ids)

    def send(self, text: str, photo: str | None = None) -> dict[str, bool]:
        method = "sendPhoto" if photo else "sendMessage"
        url = TELEGRAM_API.format(token=self.token, method=method)
        results = {}
        for chat_id in self.chat_ids:
            payload = {"chat_id": chat_id, "parse_mode": "HTML"}
            if photo:
                payload.update(photo=photo, caption=text)
            else:
                payload["text"] = text
            try:
                response = requests.post(url, json=payload, timeout=self.timeout)
                response.raise_for_status()
            except requests.RequestException as exc:
                logger.warning("Telegram %s to chat %s failed: %s", method, chat_id, exc)
                results[chat_id] = False
                continue
            logger.info("Telegram %s delivered to chat %s", method, chat_id)
            results[chat_id] = True
        return results


def build_messages(entries, today: date | None = None) -> list[tuple[str, str | None]]:
    """
    Split the digest into (text, photo) messages: an order with an image
    closes the running message and is sent as that photo's caption.
    """
    entries = list(entries)
    if not entries:
        return []
    today = today or timezone.localdate()
    messages = []
    text = format_reminder_message([], today)
    for entry in entries:
        text += format_entry(entry)
        if entry.image_url:
            messages.append((text, entry.image_url))
            text = ""
    if text.strip():
        messages.append((text, None))
    return messages


def dispatch_reminders(entries, notifier: TelegramNotifier, today: date | None = None) -> int:
    """Send every message; returns how many messages went out."""
    messages = build_messages(entries, today)
    for text, photo in messages:
        notifier.send(text, photo=photo)
    return len(messages)
