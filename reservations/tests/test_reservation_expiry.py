from datetime import timedelta

import pytest
from catalog.tests.factories import ProductFactory, StaffFactory
from common.exceptions import InvalidState
from django.core.management import call_command
from django.utils import timezone
from inventory.models import StockLedgerEntry
from inventory.selectors import available_quantity, find_ledger_drift
from reservations.models import Reservation
from reservations.services import commit_reservation, expire_reservation, open_reservation, sweep_expired
from rest_framework.test import APIClient


@pytest.mark.django_db
def test_sweep_expires_only_past_deadline_reservations():
    product = ProductFactory(stock=10)
    stale = open_reservation(cart_id="cart-1", requested={product.id: 3}, ttl=timedelta(minutes=1))
    fresh = open_reservation(cart_id="cart-2", requested={product.id: 2}, ttl=timedelta(minutes=30))

    now = timezone.now() + timedelta(minutes=5)
    assert sweep_expired(now=now) == 1
    assert sweep_expired(now=now) == 0

    stale.refresh_from_db()
    fresh.refresh_from_db()
    assert stale.state == Reservation.STATE_EXPIRED
    assert fresh.state == Reservation.STATE_OPEN
    assert available_quantity(product.id) == 8
    # Released exactly once
    assert StockLedgerEntry.objects.filter(reason="release", reference=f"reservation:{stale.pk}").count() == 1


@pytest.mark.django_db
def test_sweep_respects_limit():
    product = ProductFactory(stock=10)
    for n in range(3):
        open_reservation(cart_id=f"cart-{n}", requested={product.id: 1}, ttl=timedelta(seconds=1))

    later = timezone.now() + timedelta(minutes=1)
    assert sweep_expired(now=later, limit=2) == 2
    assert sweep_expired(now=later) == 1


@pytest.mark.django_db
def test_expire_before_deadline_is_a_no_op():
    product = ProductFactory(stock=10)
    res = open_reservation(cart_id="cart-1", requested={product.id: 1})
    assert expire_reservation(res.pk) is False
    res.refresh_from_db()
    assert res.state == Reservation.STATE_OPEN


@pytest.mark.django_db
def test_commit_after_sweep_fails_cleanly():
    product = ProductFactory(stock=5)
    res = open_reservation(cart_id="cart-1", requested={product.id: 2}, ttl=timedelta(minutes=1))
    sweep_expired(now=timezone.now() + timedelta(minutes=2))

    with pytest.raises(InvalidState):
        commit_reservation(res.pk)
    assert available_quantity(product.id) == 5
    assert find_ledger_drift() == []


@pytest.mark.django_db
def test_sweep_after_commit_leaves_committed_stock():
    product = ProductFactory(stock=5)
    res = open_reservation(cart_id="cart-1", requested={product.id: 2}, ttl=timedelta(minutes=1))
    commit_reservation(res.pk)

    assert sweep_expired(now=timezone.now() + timedelta(minutes=2)) == 0
    res.refresh_from_db()
    assert res.state == Reservation.STATE_COMMITTED
    assert available_quantity(product.id) == 3


@pytest.mark.django_db
def test_expire_reservations_command_sweeps_once():
    product = ProductFactory(stock=5)
    res = open_reservation(cart_id="cart-1", requested={product.id: 2}, ttl=timedelta(minutes=1))
    Reservation.objects.filter(pk=res.pk).update(expires_at=timezone.now() - timedelta(seconds=1))

    call_command("expire_reservations")

    res.refresh_from_db()
    assert res.state == Reservation.STATE_EXPIRED
    assert available_quantity(product.id) == 5


@pytest.mark.django_db
def test_staff_can_list_reservations_by_state():
    product = ProductFactory(stock=5)
    open_reservation(cart_id="cart-1", requested={product.id: 1})
    client = APIClient()
    client.force_authenticate(user=StaffFactory())

    resp = client.get("/api/v1/reservations/", {"state": "open"})
    assert resp.status_code == 200
    results = resp.json()["results"]
    assert len(results) == 1
    assert results[0]["cart_id"] == "cart-1"
    assert results[0]["lines"] == [{"product": product.id, "quantity": 1}]

    anon = APIClient().get("/api/v1/reservations/")
    assert anon.status_code in (401, 403)
