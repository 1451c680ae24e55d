from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ardenOrders.errors import PreconditionError, StorageError
from ardenOrders.models import OrderStatus
from ardenOrders.store import OrderStore

logger = logging.getLogger(__name__)


@dataclass
class BulkStatusResult:
    status: str
    updated: list[int] = field(default_factory=list)
    failed: dict[int, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed

    def as_dict(self) -> dict:
        return {
            "status": self.status,
            "updated": self.updated,
            "failed": {str(pk): reason for pk, reason in self.failed.items()},
            "ok": self.ok,
        }


def _clean_ids(order_ids) -> list[int]:
    if order_ids is None:
        return []
    if not isinstance(order_ids, (list, tuple, set)):
        raise PreconditionError(f"order ids must be a list, got {type(order_ids).__name__}")
    cleaned: list[int] = []
    for raw in order_ids:
        if isinstance(raw, bool):
            raise PreconditionError(f"invalid order id: {raw!r}")
        try:
            pk = int(raw)
        except (TypeError, ValueError) as exc:
            raise PreconditionError(f"invalid order id: {raw!r}") from exc
        if pk not in cleaned:
            cleaned.append(pk)
    return cleaned


def apply_status(order_ids, target_status, store: OrderStore | None = None) -> BulkStatusResult:
    """
    Set ``target_status`` on every order in ``order_ids`` in one batch.

    Raises PreconditionError before writing anything when the id list is
    empty or the status is missing or unknown. Ids that do not exist are
    reported in ``failed``; a storage failure marks every id as failed.
    ``actual_delivery_date`` is never touched.
    """
    ids = _clean_ids(order_ids)
    if not ids:
        raise PreconditionError("no orders selected")

    status = str(target_status or "").strip().upper()
    if not status:
        raise PreconditionError("no target status given")
    if status not in OrderStatus.values:
        raise PreconditionError(f"unknown status: {target_status!r}")

    store = store or OrderStore()
    result = BulkStatusResult(status=status)
    try:
        outcome = store.update_status(ids, status)
    except StorageError as exc:
        result.failed = {pk: str(exc) for pk in ids}
        return result

    result.updated = outcome.updated
    result.failed = {pk: "not found" for pk in outcome.missing}
    logger.info("Bulk status %s: %d updated, %d failed", status, len(result.updated), len(result.failed))
    return result
