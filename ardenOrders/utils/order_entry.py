"""Single-order entry: the admin/API counterpart of a one-group import."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from django.db import transaction
from django.utils import timezone

from ardenOrders.errors import ValidationError
from ardenOrders.models import Order, OrderStatus
from ardenOrders.store import ItemDraft, OrderDraft, OrderStore
from importers._order_codes import OrderCodeGenerator, insert_with_code_retry

logger = logging.getLogger(__name__)


@dataclass
class CreatedOrder:
    order_id: int
    code: str
    item_count: int
    total_amount: Decimal


def _as_item(raw) -> ItemDraft:
    if isinstance(raw, ItemDraft):
        return raw
    return ItemDraft(
        product_name=(raw.get("product_name") or "").strip(),
        quantity=raw.get("quantity") or 0,
        unit_price=Decimal(str(raw.get("unit_price") or "0")),
        color=(raw.get("color") or "").strip() or None,
        size=(raw.get("size") or "").strip() or None,
    )


def create_order(
    customer_id,
    items,
    order_date: date | None,
    due_date: date | None = None,
    *,
    status=OrderStatus.NEW,
    note: str = "",
    code: str | None = None,
    store: OrderStore | None = None,
    today: date | None = None,
    max_attempts: int | None = None,
) -> CreatedOrder:
    """
    Create one order with its items.

    A missing ``code`` is generated; a duplicate code is regenerated and the
    insert retried up to ``max_attempts`` times, after which
    CodeExhaustedError propagates. Order and items commit together.
    """
    if not customer_id:
        raise ValidationError("customer is required")
    if order_date is None:
        raise ValidationError("order date is required")

    drafts = [_as_item(raw) for raw in items or []]
    valid = [item for item in drafts if item.product_name and int(item.quantity or 0) > 0]
    if not valid:
        raise ValidationError("at least one item with a product name and quantity is required")

    store = store or OrderStore()
    codes = OrderCodeGenerator(store)
    today = today or timezone.localdate()
    total = sum((item.line_total for item in valid), Decimal("0.00"))

    def insert(candidate: str) -> int:
        return store.insert_order(
            OrderDraft(
                customer_id=customer_id,
                code=candidate,
                order_date=order_date,
                due_date=due_date,
                status=status,
                total_amount=total,
                note=note,
            )
        )

    with transaction.atomic():
        first_code = (code or "").strip() or codes.generate(today)
        order_id, final_code = insert_with_code_retry(
            insert, first_code, lambda: codes.generate(today), max_attempts
        )
        count = store.insert_items(order_id, valid)

    logger.info("Created order %s with %d items", final_code, count)
    return CreatedOrder(order_id=order_id, code=final_code, item_count=count, total_amount=total)


def save_new_order(
    order: Order,
    *,
    store: OrderStore | None = None,
    today: date | None = None,
    max_attempts: int | None = None,
) -> str:
    """
    Insert an Order built by a form, generating its code when blank.

    Uses the same code retry as ``create_order``: a code taken in the
    meantime is regenerated up to ``max_attempts`` times. Returns the code
    the order was saved with.
    """
    store = store or OrderStore()
    codes = OrderCodeGenerator(store)
    today = today or timezone.localdate()

    def insert(candidate: str) -> int:
        order.code = candidate
        return store.save_order(order)

    first_code = (order.code or "").strip() or codes.generate(today)
    _, final_code = insert_with_code_retry(
        insert, first_code, lambda: codes.generate(today), max_attempts
    )
    logger.info("Saved order %s", final_code)
    return final_code


def refresh_order_total(order: Order) -> Decimal:
    """Recompute ``total_amount`` from the order's lines; an order without lines keeps its amount."""
    items = list(order.items.all())
    if not items:
        return order.total_amount
    total = sum((Decimal(item.quantity) * item.unit_price for item in items), Decimal("0.00"))
    if total != order.total_amount:
        order.total_amount = total
        order.save(update_fields=["total_amount"])
    return total
