"""
order_importer.py
-----------------
Bulk spreadsheet import of workshop orders.
Handles:
- spreadsheet decoding (via run_from_file)
- grouping rows into orders by order code
- customer find-or-create, order creation with code retry, item batch insert
- per-order outcome report, dry-run and summary reporting

Groups are independent: one bad order never blocks or rolls back another.
Inside a group the steps run Customer -> Order -> Items and a failing step
stops only that group, leaving earlier steps committed.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from pathlib import Path

from django.conf import settings
from django.db import connection
from django.utils import timezone

from ardenOrders.errors import ConflictError, StorageError, ValidationError
from ardenOrders.models import OrderStatus
from ardenOrders.store import DryRunOrderStore, ItemDraft, OrderDraft, OrderStore
from importers._base_Importer import BaseImporter
from importers._customer_resolver import CustomerResolver
from importers._order_codes import OrderCodeGenerator, insert_with_code_retry
from importers._tabular import ImportRow, read_rows, source_for

logger = logging.getLogger(__name__)

IMPORTED = "imported"
SKIPPED = "skipped"
PARTIAL = "partial"


@dataclass
class GroupOutcome:
    """What happened to one order group."""

    code: str
    kind: str
    message: str
    final_code: str | None = None
    order_id: int | None = None
    item_count: int = 0

    @property
    def line(self) -> str:
        if self.kind == IMPORTED:
            return self.message
        return f"[{self.code}] {self.message}"


@dataclass
class ImportReport:
    outcomes: list[GroupOutcome] = field(default_factory=list)
    rows_processed: int = 0

    @property
    def lines(self) -> list[str]:
        return [outcome.line for outcome in self.outcomes]

    @property
    def groups_found(self) -> int:
        return len(self.outcomes)

    def _count(self, kind: str) -> int:
        return sum(1 for outcome in self.outcomes if outcome.kind == kind)

    @property
    def imported(self) -> int:
        return self._count(IMPORTED)

    @property
    def skipped(self) -> int:
        return self._count(SKIPPED)

    @property
    def partial(self) -> int:
        return self._count(PARTIAL)


def group_rows(rows) -> dict[str, list[ImportRow]]:
    """Partition rows by trimmed order code, keeping first-seen order. Blank codes are dropped."""
    groups: dict[str, list[ImportRow]] = {}
    for row in rows:
        code = (row.order_code or "").strip()
        if not code:
            continue
        groups.setdefault(code, []).append(row)
    return groups


def build_items(rows) -> list[ItemDraft]:
    return [
        ItemDraft(
            product_name=row.product_name.strip(),
            quantity=row.quantity,
            unit_price=row.unit_price,
            color=row.color,
            size=row.size,
        )
        for row in rows
        if row.is_valid_item
    ]


class OrderImporter(BaseImporter):
    """Reconciles decoded spreadsheet rows into customers, orders and items."""

    label = "Order Import"

    def __init__(
        self,
        dry_run: bool = False,
        store: OrderStore | None = None,
        max_workers: int | None = None,
        *,
        today: date | None = None,
        log_to_console: bool = False,
        report: bool = False,
        report_dir=None,
    ):
        super().__init__(dry_run, log_to_console, report=report, report_dir=report_dir)
        if store is None:
            store = DryRunOrderStore() if dry_run else OrderStore()
        self.store = store
        if max_workers is None:
            max_workers = getattr(settings, "ORDER_IMPORT_MAX_WORKERS", 1)
        self.max_workers = max(1, int(max_workers or 1))
        self.today = today
        self.customers = CustomerResolver(store)
        self.codes = OrderCodeGenerator(store)
        self.source = "excel"
        self.last_report: ImportReport | None = None

    # ------------------------------------------------------------------
    # 📥 Entry points
    # ------------------------------------------------------------------
    def run_from_file(self, file_path) -> str:
        """Decode ``file_path`` and import it. Raises ImportFileError when it cannot be read."""
        file_path = Path(file_path)
        self.reset()
        self.source = source_for(file_path)
        self.log(f"Importing {file_path.name} ({'dry-run' if self.dry_run else 'live'})", "📥")

        rows = read_rows(file_path)
        if not rows:
            self.log("File has no data rows.", "⚠️")

        self.reconcile(rows)
        self.summarize()
        return self.get_output()

    def reconcile(self, rows) -> ImportReport:
        rows = list(rows)
        groups = group_rows(rows)
        self.counters["rows_processed"] += len(rows)
        self.counters["groups_found"] += len(groups)
        self.log(f"Found {len(groups)} order codes in {len(rows)} rows.", "🔎")

        if self.max_workers > 1 and len(groups) > 1:
            outcomes = self._process_parallel(groups)
        else:
            outcomes = [self._run_group(code, group) for code, group in groups.items()]

        report = ImportReport(outcomes=outcomes, rows_processed=len(rows))
        for outcome in outcomes:
            self._record(outcome)

        self.finish_time = timezone.now()
        self.last_report = report
        return report

    # ------------------------------------------------------------------
    # 🧵 Worker pool
    # ------------------------------------------------------------------
    def _process_parallel(self, groups) -> list[GroupOutcome]:
        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="order-import") as pool:
            futures = [
                pool.submit(self._run_group_in_worker, code, group)
                for code, group in groups.items()
            ]
            # Results come back in submission order, i.e. group order.
            return [future.result() for future in futures]

    def _run_group_in_worker(self, code, rows) -> GroupOutcome:
        try:
            return self._run_group(code, rows)
        finally:
            connection.close()

    # ------------------------------------------------------------------
    # 🧩 Single-group processing
    # ------------------------------------------------------------------
    def _run_group(self, code, rows) -> GroupOutcome:
        try:
            return self._process_group(code, rows)
        except Exception as exc:
            logger.exception("Unexpected failure importing order %s", code)
            return GroupOutcome(code, SKIPPED, f"skipped: unexpected error: {exc}")

    def _process_group(self, code: str, rows: list[ImportRow]) -> GroupOutcome:
        header = rows[0]
        if not (header.customer_name or "").strip():
            return GroupOutcome(code, SKIPPED, "skipped: missing customer name")

        try:
            customer_id = self.customers.resolve(header.customer_name, header.phone)
        except (ValidationError, StorageError) as exc:
            return GroupOutcome(code, SKIPPED, f"skipped: customer resolution failed: {exc}")

        items = build_items(rows)
        total = sum((item.line_total for item in items), Decimal("0.00"))

        def insert(candidate: str) -> int:
            return self.store.insert_order(
                OrderDraft(
                    customer_id=customer_id,
                    code=candidate,
                    order_date=header.order_date,
                    due_date=header.due_date,
                    status=OrderStatus.NEW,
                    total_amount=total,
                )
            )

        try:
            order_id, final_code = insert_with_code_retry(
                insert,
                code,
                lambda: self.codes.generate(self.today or timezone.localdate()),
            )
        except (ConflictError, StorageError) as exc:
            return GroupOutcome(code, SKIPPED, f"skipped: order creation failed: {exc}")

        if final_code != code:
            self.log(f"Order code {code} already taken, saved as {final_code}", "🔁")

        if not items:
            return GroupOutcome(code, SKIPPED, "skipped: no valid items", final_code, order_id)

        try:
            count = self.store.insert_items(order_id, items)
        except StorageError as exc:
            return GroupOutcome(
                code,
                PARTIAL,
                f"created order but failed items: {exc}",
                final_code,
                order_id,
            )

        return GroupOutcome(
            code,
            IMPORTED,
            f"imported: {final_code} ({count} items)",
            final_code,
            order_id,
            count,
        )

    # ------------------------------------------------------------------
    # 📊 Bookkeeping
    # ------------------------------------------------------------------
    def _record(self, outcome: GroupOutcome) -> None:
        if outcome.kind == IMPORTED:
            self.counters["imported"] += 1
            self.log(outcome.line, "✔")
        elif outcome.kind == PARTIAL:
            self.counters["partial"] += 1
            self.counters["errors"] += 1
            self.log(outcome.line, "⚠️")
        else:
            self.counters["skipped"] += 1
            self.log(outcome.line, "⏭️")
