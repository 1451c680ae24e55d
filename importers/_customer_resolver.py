"""
_customer_resolver.py
---------------------
Find-or-create customers by exact (name, phone).

Matching is exact: no case folding and no whitespace collapsing beyond the
trim done at decode time, so "Lan" and "lan" are two different customers.
"""

from __future__ import annotations

import threading

from ardenOrders.errors import ValidationError


class CustomerResolver:
    """Resolves customers through an ``OrderStore`` with a per-run cache."""

    def __init__(self, store):
        self.store = store
        self._cache: dict[tuple[str, str | None], int] = {}
        self._lock = threading.Lock()
        self.created = 0

    @staticmethod
    def normalize(name, phone) -> tuple[str, str | None]:
        clean_name = (name or "").strip()
        clean_phone = (phone or "").strip() or None
        return clean_name, clean_phone

    def resolve(self, name, phone=None) -> int:
        """
        Return the id of the customer matching (name, phone), creating it if
        absent. Raises ValidationError for a blank name; StorageError from the
        store propagates unchanged.
        """
        key = self.normalize(name, phone)
        if not key[0]:
            raise ValidationError("customer name is required")

        # One lock per run keeps concurrent groups from creating the same customer twice.
        with self._lock:
            cached = self._cache.get(key)
            if cached is not None:
                return cached

            customer_id = self.store.find_customer(*key)
            if customer_id is None:
                customer_id = self.store.insert_customer(*key)
                self.created += 1

            self._cache[key] = customer_id
            return customer_id
