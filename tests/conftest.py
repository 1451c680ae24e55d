import itertools
import os
import threading

import django

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "core.settings")

# Only initialize once
if not django.apps.apps.ready:
    django.setup()

import pytest

from ardenOrders.errors import ConflictError
from ardenOrders.store import StatusUpdate, parse_code_sequence


class InMemoryOrderStore:
    """OrderStore stand-in for tests that should not touch the database."""

    def __init__(self):
        self._ids = itertools.count(1)
        self._lock = threading.Lock()
        self.customers = {}
        self.orders = {}
        self.items = {}
        self.calls = []

    def find_customer(self, name, phone):
        self.calls.append(("find_customer", name, phone))
        matches = [pk for pk, key in self.customers.items() if key == (name, phone)]
        return min(matches) if matches else None

    def insert_customer(self, name, phone):
        with self._lock:
            pk = next(self._ids)
            self.customers[pk] = (name, phone)
        return pk

    def max_code_sequence(self, date_token):
        with self._lock:
            codes = [draft.code for draft in self.orders.values() if draft.code]
        sequences = [
            parse_code_sequence(code) or 0 for code in codes if f"-{date_token}-" in code
        ]
        return max(sequences, default=0)

    def code_exists(self, code):
        return any(draft.code == code for draft in self.orders.values())

    def insert_order(self, draft):
        with self._lock:
            if draft.code and any(existing.code == draft.code for existing in self.orders.values()):
                raise ConflictError(code=draft.code)
            pk = next(self._ids)
            self.orders[pk] = draft
        return pk

    def insert_items(self, order_id, items):
        with self._lock:
            self.items.setdefault(order_id, []).extend(items)
        return len(items)

    def update_status(self, order_ids, status):
        updated = [pk for pk in order_ids if pk in self.orders]
        for pk in updated:
            self.orders[pk].status = status
        return StatusUpdate(updated=updated, missing=[pk for pk in order_ids if pk not in self.orders])


@pytest.fixture
def memory_store():
    return InMemoryOrderStore()


@pytest.fixture
def import_dir(settings, tmp_path):
    settings.ORDER_IMPORT_DIR = tmp_path / "uploads"
    return settings.ORDER_IMPORT_DIR
