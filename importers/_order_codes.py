"""
_order_codes.py
---------------
Order code generation (``PREFIX-DDMMYYYY-NNNN``) and the bounded retry used
when an insert collides with an existing code.

The generator never hands out the same code twice, but only the unique
index on ``Order.code`` guarantees uniqueness. ``insert_with_code_retry`` reacts to its verdict.
"""

from __future__ import annotations

import logging
import threading
from datetime import date
from typing import Callable, TypeVar

from django.conf import settings
from django.utils import timezone

from ardenOrders.errors import CodeExhaustedError, ConflictError

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_PREFIX = "ARDEN"
DEFAULT_MAX_ATTEMPTS = 3


def date_token(on_date: date) -> str:
    return on_date.strftime("%d%m%Y")


def format_code(prefix: str, on_date: date, sequence: int) -> str:
    return f"{prefix}-{date_token(on_date)}-{sequence:04d}"


class OrderCodeGenerator:
    def __init__(self, store, prefix: str | None = None):
        self.store = store
        self.prefix = prefix or getattr(settings, "ORDER_CODE_PREFIX", DEFAULT_PREFIX)
        self._lock = threading.Lock()
        # Highest sequence handed out per date token by this generator.
        self._issued: dict[str, int] = {}

    def generate(self, on_date: date | None = None) -> str:
        """
        Next code for ``on_date`` (today by default): max existing sequence + 1.

        Codes already handed out but not yet stored count as existing, so
        groups sharing one generator never race for the same code.
        """
        on_date = on_date or timezone.localdate()
        token = date_token(on_date)
        with self._lock:
            highest = max(self.store.max_code_sequence(token), self._issued.get(token, 0))
            self._issued[token] = highest + 1
        return format_code(self.prefix, on_date, highest + 1)


def max_code_attempts() -> int:
    return int(getattr(settings, "ORDER_CODE_MAX_ATTEMPTS", DEFAULT_MAX_ATTEMPTS))


def insert_with_code_retry(
    insert: Callable[[str], T],
    first_code: str,
    regenerate: Callable[[], str],
    max_attempts: int | None = None,
) -> tuple[T, str]:
    """
    Call ``insert(code)`` until it stops raising ConflictError.

    The first attempt uses ``first_code``; each conflict asks ``regenerate``
    for a fresh code. Returns ``(result, code_used)``. After ``max_attempts``
    conflicting attempts raises CodeExhaustedError. Any other exception
    propagates on the spot.
    """
    attempts = max(1, max_code_attempts() if max_attempts is None else max_attempts)
    code = first_code
    for attempt in range(1, attempts + 1):
        try:
            return insert(code), code
        except ConflictError:
            logger.info("Order code %s already taken (attempt %d/%d)", code, attempt, attempts)
            if attempt == attempts:
                break
            code = regenerate()
    raise CodeExhaustedError(attempts, last_code=code)
