"""
store.py
--------
Persistence collaborator for the order engine.

The importer, code generator and bulk updater only talk to the semantic
operations defined here (find/insert customer, max code sequence, insert
or save order, insert items, update status).  Database failures are
translated into the engine's error taxonomy:

- duplicate ``Order.code``      -> ConflictError
- any other database failure    -> StorageError

Every write runs inside its own ``transaction.atomic()`` block so a failed
insert rolls back to a savepoint instead of poisoning an outer transaction.
"""

from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from django.db import DatabaseError, IntegrityError, transaction

from ardenOrders.errors import ConflictError, StorageError
from ardenOrders.models import Customer, Order, OrderItem

logger = logging.getLogger(__name__)


@dataclass
class OrderDraft:
    """Fields needed to insert one order."""
    customer_id: int
    code: str | None
    order_date: date | None = None
    due_date: date | None = None
    status: str = "NEW"
    total_amount: Decimal = Decimal("0.00")
    note: str = ""


@dataclass
class ItemDraft:
    """Fields needed to insert one order line."""
    product_name: str
    quantity: int
    unit_price: Decimal = Decimal("0.00")
    color: str | None = None
    size: str | None = None

    @property
    def line_total(self) -> Decimal:
        return Decimal(self.quantity) * self.unit_price


@dataclass
class StatusUpdate:
    """Outcome of a batch status write."""
    updated: list[int] = field(default_factory=list)
    missing: list[int] = field(default_factory=list)


def parse_code_sequence(code: str | None) -> int | None:
    """Return the numeric suffix of ``PREFIX-DDMMYYYY-NNNN`` codes."""
    if not code:
        return None
    tail = code.rsplit("-", 1)[-1]
    if not tail.isdigit():
        return None
    return int(tail)


class OrderStore:
    """Django ORM implementation of the persistence operations."""

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def find_customer(self, name: str, phone: str | None) -> int | None:
        qs = Customer.objects.filter(name=name)
        qs = qs.filter(phone__isnull=True) if phone is None else qs.filter(phone=phone)
        try:
            return qs.order_by("pk").values_list("pk", flat=True).first()
        except DatabaseError as exc:
            raise StorageError(f"customer lookup failed: {exc}") from exc

    def max_code_sequence(self, date_token: str) -> int:
        """Highest sequence number among codes containing ``-<date_token>-``."""
        try:
            codes = list(
                Order.objects.filter(code__contains=f"-{date_token}-").values_list("code", flat=True)
            )
        except DatabaseError as exc:
            raise StorageError(f"order code lookup failed: {exc}") from exc
        sequences = [seq for seq in (parse_code_sequence(c) for c in codes) if seq is not None]
        return max(sequences, default=0)

    def code_exists(self, code: str) -> bool:
        try:
            return Order.objects.filter(code=code).exists()
        except DatabaseError as exc:
            raise StorageError(f"order code lookup failed: {exc}") from exc

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    def insert_customer(self, name: str, phone: str | None) -> int:
        try:
            with transaction.atomic():
                customer = Customer.objects.create(name=name, phone=phone)
        except DatabaseError as exc:
            raise StorageError(f"customer insert failed: {exc}") from exc
        return customer.pk

    def insert_order(self, draft: OrderDraft) -> int:
        try:
            with transaction.atomic():
                order = Order.objects.create(
                    customer_id=draft.customer_id,
                    code=draft.code or None,
                    order_date=draft.order_date,
                    due_date=draft.due_date,
                    status=draft.status,
                    total_amount=draft.total_amount,
                    note=draft.note,
                )
        except IntegrityError as exc:
            if draft.code and self.code_exists(draft.code):
                raise ConflictError(code=draft.code) from exc
            raise StorageError(f"order insert failed: {exc}") from exc
        except DatabaseError as exc:
            raise StorageError(f"order insert failed: {exc}") from exc
        return order.pk

    def save_order(self, order: Order) -> int:
        """Insert a new Order instance built elsewhere (admin form, API)."""
        try:
            with transaction.atomic():
                order.save(force_insert=True)
        except IntegrityError as exc:
            order.pk = None
            if order.code and self.code_exists(order.code):
                raise ConflictError(code=order.code) from exc
            raise StorageError(f"order insert failed: {exc}") from exc
        except DatabaseError as exc:
            order.pk = None
            raise StorageError(f"order insert failed: {exc}") from exc
        return order.pk

    def insert_items(self, order_id: int, items: list[ItemDraft]) -> int:
        rows = [
            OrderItem(
                order_id=order_id,
                product_name=item.product_name,
                color=item.color,
                size=item.size,
                quantity=item.quantity,
                unit_price=item.unit_price,
            )
            for item in items
        ]
        try:
            with transaction.atomic():
                created = OrderItem.objects.bulk_create(rows)
        except DatabaseError as exc:
            logger.warning("Item batch insert failed for order_id=%s: %s", order_id, exc)
            raise StorageError(f"order items insert failed: {exc}") from exc
        return len(created)

    def update_status(self, order_ids: list[int], status: str) -> StatusUpdate:
        try:
            with transaction.atomic():
                qs = Order.objects.select_for_update().filter(pk__in=order_ids)
                existing = set(qs.values_list("pk", flat=True))
                qs.update(status=status)
        except DatabaseError as exc:
            logger.warning("Status update to %s failed for %d orders: %s", status, len(order_ids), exc)
            raise StorageError(f"status update failed: {exc}") from exc
        return StatusUpdate(
            updated=[pk for pk in order_ids if pk in existing],
            missing=[pk for pk in order_ids if pk not in existing],
        )


class DryRunOrderStore(OrderStore):
    """
    Read-through store that simulates writes.

    Lookups hit the database; inserts hand out negative placeholder ids and
    remember simulated customers and codes so a dry run behaves like the live
    run would (repeat customers are reused, duplicate codes still conflict).
    """

    def __init__(self):
        self._ids = itertools.count(1)
        self._customers: dict[tuple[str, str | None], int] = {}
        self._codes: set[str] = set()
        self._lock = threading.Lock()

    def _next_id(self) -> int:
        return -next(self._ids)

    def find_customer(self, name, phone):
        simulated = self._customers.get((name, phone))
        if simulated is not None:
            return simulated
        return super().find_customer(name, phone)

    def max_code_sequence(self, date_token):
        persisted = super().max_code_sequence(date_token)
        with self._lock:
            codes = list(self._codes)
        simulated = [
            parse_code_sequence(code) or 0
            for code in codes
            if f"-{date_token}-" in code
        ]
        return max([persisted, *simulated])

    def insert_customer(self, name, phone):
        with self._lock:
            customer_id = self._next_id()
            self._customers[(name, phone)] = customer_id
        return customer_id

    def insert_order(self, draft):
        with self._lock:
            if draft.code:
                if draft.code in self._codes or self.code_exists(draft.code):
                    raise ConflictError(code=draft.code)
                self._codes.add(draft.code)
            return self._next_id()

    def insert_items(self, order_id, items):
        return len(items)
