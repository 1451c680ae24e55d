import datetime
from decimal import Decimal

import pytest

from ardenOrders.errors import CodeExhaustedError, ConflictError, ValidationError
from ardenOrders.models import Order
from ardenOrders.store import ItemDraft, OrderStore
from ardenOrders.utils.order_entry import create_order, refresh_order_total, save_new_order
from tests.factories import CustomerFactory, OrderFactory, OrderItemFactory

TODAY = datetime.date(2026, 10, 18)


@pytest.mark.django_db
def test_create_order_generates_code_and_total():
    customer = CustomerFactory()

    created = create_order(
        customer.pk,
        [
            {"product_name": "Shirt", "quantity": 2, "unit_price": "150000", "color": "Blue"},
            {"product_name": "", "quantity": 1},
            ItemDraft(product_name="Pants", quantity=1, unit_price=Decimal("200000")),
        ],
        order_date=TODAY,
        due_date=TODAY + datetime.timedelta(days=7),
        today=TODAY,
    )

    assert created.code == "ARDEN-18102026-0001"
    assert created.item_count == 2
    assert created.total_amount == Decimal("500000")
    order = Order.objects.get(pk=created.order_id)
    assert order.total_amount == Decimal("500000.00")
    assert order.items.get(product_name="Shirt").color == "Blue"


@pytest.mark.django_db
def test_duplicate_code_is_regenerated():
    OrderFactory(code="ARDEN-18102026-0001")
    customer = CustomerFactory()

    created = create_order(
        customer.pk,
        [{"product_name": "Shirt", "quantity": 1}],
        order_date=TODAY,
        code="ARDEN-18102026-0001",
        today=TODAY,
    )

    assert created.code == "ARDEN-18102026-0002"


@pytest.mark.django_db
def test_gives_up_after_bound(monkeypatch):
    customer = CustomerFactory()
    attempts = []

    def always_conflict(self, draft):
        attempts.append(draft.code)
        raise ConflictError(code=draft.code)

    monkeypatch.setattr(OrderStore, "insert_order", always_conflict)

    with pytest.raises(CodeExhaustedError):
        create_order(customer.pk, [{"product_name": "Shirt", "quantity": 1}], order_date=TODAY, today=TODAY)

    assert len(attempts) == 3
    assert Order.objects.count() == 0


@pytest.mark.parametrize(
    "kwargs",
    [
        {"customer_id": None, "items": [{"product_name": "Shirt", "quantity": 1}], "order_date": TODAY},
        {"customer_id": 1, "items": [{"product_name": "Shirt", "quantity": 1}], "order_date": None},
        {"customer_id": 1, "items": [{"product_name": "Shirt", "quantity": 0}], "order_date": TODAY},
        {"customer_id": 1, "items": [], "order_date": TODAY},
    ],
)
def test_validation(kwargs, memory_store):
    with pytest.raises(ValidationError):
        create_order(store=memory_store, **kwargs)


@pytest.mark.django_db
def test_save_new_order_generates_code_for_blank_form_order():
    customer = CustomerFactory()
    order = Order(customer=customer, order_date=TODAY)

    code = save_new_order(order, today=TODAY)

    assert code == "ARDEN-18102026-0001"
    assert Order.objects.get(pk=order.pk).code == code


@pytest.mark.django_db
def test_save_new_order_regenerates_taken_code():
    OrderFactory(code="ARDEN-18102026-0001")
    order = Order(customer=CustomerFactory(), order_date=TODAY, code="ARDEN-18102026-0001")

    code = save_new_order(order, today=TODAY)

    assert code == "ARDEN-18102026-0002"
    assert Order.objects.filter(code__startswith="ARDEN-18102026-").count() == 2


@pytest.mark.django_db
def test_refresh_order_total_sums_lines():
    order = OrderFactory(total_amount=Decimal("1.00"))
    OrderItemFactory(order=order, quantity=2, unit_price=Decimal("150000"))
    OrderItemFactory(order=order, quantity=1, unit_price=Decimal("50000"))

    assert refresh_order_total(order) == Decimal("350000")
    order.refresh_from_db()
    assert order.total_amount == Decimal("350000.00")


@pytest.mark.django_db
def test_refresh_order_total_keeps_amount_without_lines():
    order = OrderFactory(total_amount=Decimal("90000.00"))

    assert refresh_order_total(order) == Decimal("90000.00")
