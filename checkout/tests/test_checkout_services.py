from datetime import timedelta
from decimal import Decimal

import pytest
from catalog.tests.factories import ProductFactory
from checkout import services as checkout_services
from checkout.models import CheckoutAttempt
from checkout.services import abort_checkout, confirm_checkout, start_checkout
from common.exceptions import CheckoutInconsistent, Expired, InvalidState, NotFound, PartialStockFailure
from django.db import DatabaseError
from inventory.models import StockItem, StockLedgerEntry
from inventory.selectors import available_quantity, find_ledger_drift
from orders.models import Order
from orders.services import list_orders
from reservations.models import Reservation


def _lines(product, quantity):
    return [{"product_id": product.id, "quantity": quantity}]


@pytest.mark.django_db
def test_second_cart_fails_and_first_cart_places_one_order():
    product = ProductFactory(price=Decimal("3.99"), stock=5)

    first = start_checkout(cart_id="cart1", lines=_lines(product, 3), customer_id="cust-1")
    assert first.state == CheckoutAttempt.STATE_RESERVED
    assert available_quantity(product.id) == 2

    with pytest.raises(PartialStockFailure):
        start_checkout(cart_id="cart2", lines=_lines(product, 3))
    assert available_quantity(product.id) == 2
    rejected = CheckoutAttempt.objects.get(cart_id="cart2")
    assert rejected.state == CheckoutAttempt.STATE_ROLLED_BACK
    assert rejected.failure_code == "partial_stock_failure"

    order = confirm_checkout(reservation_id=first.reservation_id, customer_id="cust-1")
    assert [(line.product_id, line.quantity) for line in order.lines.all()] == [(product.id, 3)]
    assert order.total == Decimal("11.97")
    assert list(list_orders()) == [order]

    first.refresh_from_db()
    assert first.state == CheckoutAttempt.STATE_PLACED
    assert first.order_id == order.id


@pytest.mark.django_db
def test_abort_returns_stock_with_balancing_entries():
    product = ProductFactory(stock=5)
    attempt = start_checkout(cart_id="cart1", lines=_lines(product, 2))

    reservation = abort_checkout(reservation_id=attempt.reservation_id)

    assert reservation.state == Reservation.STATE_RELEASED
    assert available_quantity(product.id) == 5
    entries = list(StockLedgerEntry.objects.filter(product=product).exclude(reason="restock"))
    assert [e.reason for e in entries] == ["reserve", "release"]
    assert sum(e.delta for e in entries) == 0
    attempt.refresh_from_db()
    assert attempt.state == CheckoutAttempt.STATE_ROLLED_BACK
    assert attempt.failure_code == "aborted"

    # Repeating the abort changes nothing
    abort_checkout(reservation_id=attempt.reservation_id)
    assert available_quantity(product.id) == 5
    assert StockLedgerEntry.objects.filter(product=product, reason="release").count() == 1


@pytest.mark.django_db
def test_confirm_is_idempotent():
    product = ProductFactory(stock=5)
    attempt = start_checkout(cart_id="cart1", lines=_lines(product, 2))

    first = confirm_checkout(reservation_id=attempt.reservation_id, customer_id="cust-1")
    second = confirm_checkout(reservation_id=attempt.reservation_id, customer_id="cust-1")

    assert first.id == second.id
    assert Order.objects.count() == 1
    assert StockLedgerEntry.objects.filter(product=product, reason="commit").count() == 1
    assert StockItem.objects.get(product=product).sold == 2


@pytest.mark.django_db
def test_confirm_by_another_customer_is_refused():
    product = ProductFactory(stock=5)
    attempt = start_checkout(cart_id="cart1", lines=_lines(product, 1))
    confirm_checkout(reservation_id=attempt.reservation_id, customer_id="cust-1")

    with pytest.raises(InvalidState):
        confirm_checkout(reservation_id=attempt.reservation_id, customer_id="cust-2")


@pytest.mark.django_db
def test_order_uses_catalog_price_at_confirm_time():
    product = ProductFactory(price=Decimal("2.00"), stock=5)
    attempt = start_checkout(cart_id="cart1", lines=_lines(product, 2))
    product.price = Decimal("2.50")
    product.save(update_fields=["price"])

    order = confirm_checkout(reservation_id=attempt.reservation_id, customer_id="cust-1")
    assert order.total == Decimal("5.00")
    assert order.lines.get().product_name == product.name


@pytest.mark.django_db
def test_order_write_failure_is_reported_and_retry_completes(monkeypatch):
    product = ProductFactory(stock=5)
    attempt = start_checkout(cart_id="cart1", lines=_lines(product, 2))
    captured = []
    real_append = checkout_services.append_order

    def broken_append(**kwargs):
        raise DatabaseError("disk full")

    monkeypatch.setattr(checkout_services, "append_order", broken_append)
    monkeypatch.setattr(checkout_services.sentry_sdk, "capture_exception", captured.append)

    with pytest.raises(CheckoutInconsistent) as exc_info:
        confirm_checkout(reservation_id=attempt.reservation_id, customer_id="cust-1")
    assert exc_info.value.status_code == 500
    assert len(captured) == 1
    # Stock stays sold; nothing is compensated
    item = StockItem.objects.get(product=product)
    assert (item.available, item.held, item.sold) == (3, 0, 2)
    assert not Order.objects.exists()
    attempt.refresh_from_db()
    assert attempt.state == CheckoutAttempt.STATE_CONFIRMED

    monkeypatch.setattr(checkout_services, "append_order", real_append)
    order = confirm_checkout(reservation_id=attempt.reservation_id, customer_id="cust-1")

    assert Order.objects.get() == order
    assert StockLedgerEntry.objects.filter(product=product, reason="commit").count() == 1
    assert find_ledger_drift() == []


@pytest.mark.django_db
def test_order_write_failure_logs_error(monkeypatch, caplog):
    product = ProductFactory(stock=5)
    attempt = start_checkout(cart_id="cart1", lines=_lines(product, 1))

    def broken_append(**kwargs):
        raise DatabaseError("connection reset")

    monkeypatch.setattr(checkout_services, "append_order", broken_append)
    monkeypatch.setattr(checkout_services.sentry_sdk, "capture_exception", lambda exc: None)

    with caplog.at_level("ERROR", logger="pantry.checkout"):
        with pytest.raises(CheckoutInconsistent):
            confirm_checkout(reservation_id=attempt.reservation_id, customer_id="cust-1")
    record = next(r for r in caplog.records if r.getMessage() == "checkout_inconsistent")
    assert record.levelname == "ERROR"
    assert record.reservation_id == str(attempt.reservation_id)


@pytest.mark.django_db
def test_confirm_after_expiry_fails_and_returns_stock():
    product = ProductFactory(stock=5)
    attempt = start_checkout(cart_id="cart1", lines=_lines(product, 2))
    Reservation.objects.filter(pk=attempt.reservation_id).update(
        expires_at=attempt.reservation.expires_at - timedelta(hours=1)
    )

    with pytest.raises(Expired):
        confirm_checkout(reservation_id=attempt.reservation_id, customer_id="cust-1")

    assert available_quantity(product.id) == 5
    attempt.refresh_from_db()
    assert attempt.state == CheckoutAttempt.STATE_ROLLED_BACK
    assert attempt.failure_code == "expired"
    assert not Order.objects.exists()


@pytest.mark.django_db
def test_abort_after_confirm_is_invalid():
    product = ProductFactory(stock=5)
    attempt = start_checkout(cart_id="cart1", lines=_lines(product, 2))
    confirm_checkout(reservation_id=attempt.reservation_id, customer_id="cust-1")

    with pytest.raises(InvalidState):
        abort_checkout(reservation_id=attempt.reservation_id)
    assert StockItem.objects.get(product=product).sold == 2


@pytest.mark.django_db
def test_confirm_after_abort_is_invalid():
    product = ProductFactory(stock=5)
    attempt = start_checkout(cart_id="cart1", lines=_lines(product, 2))
    abort_checkout(reservation_id=attempt.reservation_id)

    with pytest.raises(InvalidState):
        confirm_checkout(reservation_id=attempt.reservation_id, customer_id="cust-1")
    assert not Order.objects.exists()


@pytest.mark.django_db
def test_unknown_reservation():
    with pytest.raises(NotFound):
        confirm_checkout(reservation_id="0b6f2a4c-1111-4222-8333-444455556666", customer_id="cust-1")
    with pytest.raises(NotFound):
        abort_checkout(reservation_id="0b6f2a4c-1111-4222-8333-444455556666")


@pytest.mark.django_db
def test_duplicate_lines_are_merged():
    product = ProductFactory(stock=5)
    attempt = start_checkout(
        cart_id="cart1", lines=[{"product_id": product.id, "quantity": 1}, {"product_id": product.id, "quantity": 2}]
    )
    assert attempt.reservation.held_quantities() == {product.id: 3}


@pytest.mark.django_db
@pytest.mark.parametrize(
    "lines",
    [
        [],
        [{"product_id": 1, "quantity": 0}],
        [{"product_id": "not-a-number", "quantity": 1}],
        [{"quantity": 1}],
    ],
)
def test_malformed_lines_roll_the_attempt_back(lines):
    with pytest.raises((ValueError, KeyError)):
        start_checkout(cart_id="cart9", lines=lines)

    attempt = CheckoutAttempt.objects.get(cart_id="cart9")
    assert attempt.state == CheckoutAttempt.STATE_ROLLED_BACK
    assert attempt.failure_code == "invalid_request"
    assert attempt.reservation is None
    assert not Reservation.objects.exists()
