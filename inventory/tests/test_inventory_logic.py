import pytest
from catalog.models import Product
from catalog.tests.factories import ProductFactory
from common.exceptions import InsufficientStock, UnknownProduct
from django.db import IntegrityError, transaction
from inventory.models import StockItem, StockLedgerEntry
from inventory.selectors import available_quantity, find_ledger_drift, ledger_balance
from inventory.services import finalize, register_stock, release, restock, try_hold


def _item(product) -> StockItem:
    return StockItem.objects.get(product=product)


@pytest.mark.django_db
def test_opening_stock_is_first_restock_entry():
    product = ProductFactory(stock=10)
    entry = StockLedgerEntry.objects.get(product=product)
    assert entry.reason == StockLedgerEntry.REASON_RESTOCK
    assert entry.delta == 10
    assert entry.balance == 10
    assert available_quantity(product.id) == 10
    assert ledger_balance(product.id) == 10


@pytest.mark.django_db
def test_register_stock_twice_keeps_one_counter():
    product = ProductFactory(stock=0)
    register_stock(product_id=product.id)
    assert StockItem.objects.filter(product=product).count() == 1


@pytest.mark.django_db
def test_hold_release_finalize_keep_ledger_in_step():
    product = ProductFactory(stock=10)

    try_hold(product_id=product.id, quantity=4, reference="r1")
    item = _item(product)
    assert (item.available, item.held, item.sold) == (6, 4, 0)

    release(product_id=product.id, quantity=1, reference="r1")
    item = _item(product)
    assert (item.available, item.held, item.sold) == (7, 3, 0)

    finalize(product_id=product.id, quantity=3, reference="r1")
    item = _item(product)
    assert (item.available, item.held, item.sold) == (7, 0, 3)

    reasons = list(StockLedgerEntry.objects.filter(product=product).values_list("reason", "delta"))
    assert reasons == [("restock", 10), ("reserve", -4), ("release", 1), ("commit", 0)]
    assert ledger_balance(product.id) == item.available
    assert find_ledger_drift() == []


@pytest.mark.django_db
def test_hold_more_than_available_fails_without_change():
    product = ProductFactory(stock=3)
    with pytest.raises(InsufficientStock) as exc_info:
        try_hold(product_id=product.id, quantity=4)
    assert exc_info.value.available == 3
    assert exc_info.value.requested == 4

    item = _item(product)
    assert (item.available, item.held) == (3, 0)
    assert StockLedgerEntry.objects.filter(product=product).count() == 1


@pytest.mark.django_db
def test_hold_exactly_available_reaches_zero():
    product = ProductFactory(stock=5)
    try_hold(product_id=product.id, quantity=5)
    assert available_quantity(product.id) == 0
    with pytest.raises(InsufficientStock):
        try_hold(product_id=product.id, quantity=1)


@pytest.mark.django_db
def test_finalize_more_than_held_fails():
    product = ProductFactory(stock=5)
    try_hold(product_id=product.id, quantity=2)
    with pytest.raises(InsufficientStock):
        finalize(product_id=product.id, quantity=3)
    item = _item(product)
    assert (item.held, item.sold) == (2, 0)


@pytest.mark.django_db
def test_release_clamps_held_at_zero():
    product = ProductFactory(stock=5)
    release(product_id=product.id, quantity=2, reference="late return")
    item = _item(product)
    assert (item.available, item.held) == (7, 0)
    assert ledger_balance(product.id) == 7


@pytest.mark.django_db
def test_unknown_product_and_inactive_product():
    with pytest.raises(UnknownProduct):
        try_hold(product_id=999999, quantity=1)
    with pytest.raises(UnknownProduct):
        restock(product_id=999999, quantity=1)

    product = ProductFactory(stock=5, status=Product.STATUS_INACTIVE)
    with pytest.raises(UnknownProduct):
        try_hold(product_id=product.id, quantity=1)


@pytest.mark.django_db
@pytest.mark.parametrize("quantity", [0, -1])
def test_non_positive_quantity_is_rejected(quantity):
    product = ProductFactory(stock=5)
    with pytest.raises(ValueError):
        try_hold(product_id=product.id, quantity=quantity)
    with pytest.raises(ValueError):
        restock(product_id=product.id, quantity=quantity)


@pytest.mark.django_db
def test_ledger_entries_are_append_only():
    product = ProductFactory(stock=5)
    entry = StockLedgerEntry.objects.get(product=product)
    entry.delta = 500
    with pytest.raises(ValueError):
        entry.save()


@pytest.mark.django_db
def test_ledger_balance_as_of_replays_history():
    product = ProductFactory(stock=5)
    first = StockLedgerEntry.objects.get(product=product)
    try_hold(product_id=product.id, quantity=2)
    assert ledger_balance(product.id, as_of=first.created_at) == 5
    assert ledger_balance(product.id) == 3


@pytest.mark.django_db
def test_database_refuses_negative_counters():
    product = ProductFactory(stock=2)
    with pytest.raises(IntegrityError), transaction.atomic():
        StockItem.objects.filter(product=product).update(available=-1)
    with pytest.raises(IntegrityError), transaction.atomic():
        StockItem.objects.filter(product=product).update(held=-1)
    assert _item(product).available == 2
