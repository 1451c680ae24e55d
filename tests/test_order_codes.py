import datetime

import pytest

from ardenOrders.errors import CodeExhaustedError, ConflictError, StorageError
from ardenOrders.store import OrderStore
from importers._order_codes import OrderCodeGenerator, format_code, insert_with_code_retry
from tests.factories import OrderFactory

DAY = datetime.date(2026, 10, 18)


def test_format_code_pads_sequence():
    assert format_code("ARDEN", DAY, 7) == "ARDEN-18102026-0007"


@pytest.mark.django_db
def test_first_code_of_the_day():
    assert OrderCodeGenerator(OrderStore()).generate(DAY) == "ARDEN-18102026-0001"


@pytest.mark.django_db
def test_next_code_follows_highest_numeric_suffix():
    OrderFactory(code="ARDEN-18102026-0007")
    OrderFactory(code="ARDEN-18102026-0002")
    OrderFactory(code="ARDEN-18102026-X")
    OrderFactory(code="ARDEN-17102026-0042")
    OrderFactory(code=None)

    assert OrderCodeGenerator(OrderStore()).generate(DAY) == "ARDEN-18102026-0008"


@pytest.mark.django_db
def test_prefix_comes_from_settings(settings):
    settings.ORDER_CODE_PREFIX = "AW"

    assert OrderCodeGenerator(OrderStore()).generate(DAY) == "AW-18102026-0001"


def test_retry_returns_first_success():
    attempts = []

    def insert(code):
        attempts.append(code)
        if len(attempts) < 3:
            raise ConflictError(code=code)
        return 42

    codes = iter(["ARDEN-18102026-0002", "ARDEN-18102026-0003"])
    result, used = insert_with_code_retry(insert, "A1", lambda: next(codes), max_attempts=3)

    assert (result, used) == (42, "ARDEN-18102026-0003")
    assert attempts == ["A1", "ARDEN-18102026-0002", "ARDEN-18102026-0003"]


def test_retry_gives_up_after_bound():
    calls = []

    def insert(code):
        calls.append(code)
        raise ConflictError(code=code)

    with pytest.raises(CodeExhaustedError) as excinfo:
        insert_with_code_retry(insert, "A1", lambda: "ARDEN-18102026-0001", max_attempts=3)

    assert len(calls) == 3
    assert excinfo.value.attempts == 3
    assert excinfo.value.code == "ARDEN-18102026-0001"


def test_retry_bound_from_settings(settings):
    settings.ORDER_CODE_MAX_ATTEMPTS = 5
    calls = []

    def insert(code):
        calls.append(code)
        raise ConflictError(code=code)

    with pytest.raises(CodeExhaustedError):
        insert_with_code_retry(insert, "A1", lambda: "B1")

    assert len(calls) == 5


def test_non_conflict_errors_propagate_immediately():
    regenerated = []

    def insert(code):
        raise StorageError("connection reset")

    with pytest.raises(StorageError):
        insert_with_code_retry(insert, "A1", lambda: regenerated.append(1) or "B1")

    assert regenerated == []


@pytest.mark.parametrize("explicit, configured", [(0, 3), (-2, 3), (None, 0)])
def test_zero_bound_still_makes_one_attempt(settings, explicit, configured):
    settings.ORDER_CODE_MAX_ATTEMPTS = configured
    calls = []

    def insert(code):
        calls.append(code)
        return 7

    assert insert_with_code_retry(insert, "A1", lambda: "B1", max_attempts=explicit) == (7, "A1")
    assert calls == ["A1"]


def test_generator_never_hands_out_a_code_twice(memory_store):
    codes = OrderCodeGenerator(memory_store)

    issued = [codes.generate(DAY) for _ in range(3)]

    assert issued == ["ARDEN-18102026-0001", "ARDEN-18102026-0002", "ARDEN-18102026-0003"]
