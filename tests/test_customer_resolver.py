import pytest

from ardenOrders.errors import ValidationError
from ardenOrders.models import Customer
from ardenOrders.store import OrderStore
from importers._customer_resolver import CustomerResolver
from tests.factories import CustomerFactory


@pytest.mark.django_db
def test_resolve_creates_customer_once():
    resolver = CustomerResolver(OrderStore())

    first = resolver.resolve(" Lan ", " 090 ")
    second = CustomerResolver(OrderStore()).resolve("Lan", "090")

    assert first == second
    customer = Customer.objects.get()
    assert (customer.name, customer.phone) == ("Lan", "090")
    assert resolver.created == 1


@pytest.mark.django_db
def test_blank_phone_is_stored_as_null_and_matched_as_null():
    resolver = CustomerResolver(OrderStore())
    CustomerFactory(name="Lan", phone="090")

    pk = resolver.resolve("Lan", "  ")

    assert Customer.objects.get(pk=pk).phone is None
    assert Customer.objects.filter(name="Lan").count() == 2
    assert resolver.resolve("Lan", None) == pk


@pytest.mark.django_db
def test_lookup_is_exact_and_case_sensitive():
    existing = CustomerFactory(name="Lan", phone="090")
    resolver = CustomerResolver(OrderStore())

    assert resolver.resolve("Lan", "090") == existing.pk
    assert resolver.resolve("lan", "090") != existing.pk


@pytest.mark.django_db
def test_oldest_duplicate_wins():
    oldest = CustomerFactory(name="Lan", phone="090")
    CustomerFactory(name="Lan", phone="090")

    assert CustomerResolver(OrderStore()).resolve("Lan", "090") == oldest.pk


@pytest.mark.parametrize("name", ["", "   ", None])
def test_blank_name_rejected_without_store_calls(memory_store, name):
    with pytest.raises(ValidationError):
        CustomerResolver(memory_store).resolve(name, "090")
    assert memory_store.calls == []


def test_cache_avoids_repeat_lookups(memory_store):
    resolver = CustomerResolver(memory_store)

    resolver.resolve("Lan", "090")
    resolver.resolve("Lan", "090")

    assert memory_store.calls == [("find_customer", "Lan", "090")]
