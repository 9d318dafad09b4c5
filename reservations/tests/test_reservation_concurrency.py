import threading
from datetime import timedelta
from typing import List

import pytest
from catalog.tests.factories import ProductFactory
from common.exceptions import ServiceError
from django.db import close_old_connections, connection
from django.utils import timezone
from inventory.models import StockItem
from inventory.selectors import find_ledger_drift
from reservations.models import Reservation
from reservations.services import cancel_reservation, commit_reservation, expire_reservation, open_reservation


def _require_serialized_writes():
    if connection.vendor != "sqlite":
        return
    if connection.settings_dict.get("OPTIONS", {}).get("transaction_mode") != "IMMEDIATE":
        pytest.skip("SQLite without IMMEDIATE transactions cannot serialize concurrent writers.")


def _run_threads(*targets):
    barrier = threading.Barrier(len(targets))
    outcomes: List[object] = []

    def _worker(fn):
        # Each thread gets its own DB connection
        close_old_connections()
        barrier.wait()
        try:
            outcomes.append(fn())
        except ServiceError as exc:
            outcomes.append(exc)
        finally:
            connection.close()

    threads = [threading.Thread(target=_worker, args=(fn,)) for fn in targets]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    return outcomes


@pytest.mark.django_db(transaction=True)
def test_threaded_competing_opens_do_not_overbook():
    _require_serialized_writes()
    product = ProductFactory(stock=5)

    outcomes = _run_threads(
        *[lambda n=n: open_reservation(cart_id=f"cart-{n}", requested={product.id: 2}) for n in range(4)]
    )

    opened = [o for o in outcomes if isinstance(o, Reservation)]
    assert len(opened) == 2
    item = StockItem.objects.get(product=product)
    assert (item.available, item.held) == (1, 4)
    assert find_ledger_drift() == []


@pytest.mark.django_db(transaction=True)
def test_threaded_commit_racing_cancel_has_one_winner():
    _require_serialized_writes()
    product = ProductFactory(stock=5)
    res = open_reservation(cart_id="cart-1", requested={product.id: 3})

    _run_threads(lambda: commit_reservation(res.pk), lambda: cancel_reservation(res.pk))

    res.refresh_from_db()
    item = StockItem.objects.get(product=product)
    assert res.state in (Reservation.STATE_COMMITTED, Reservation.STATE_RELEASED)
    if res.state == Reservation.STATE_COMMITTED:
        assert (item.available, item.held, item.sold) == (2, 0, 3)
    else:
        assert (item.available, item.held, item.sold) == (5, 0, 0)
    assert find_ledger_drift() == []


@pytest.mark.django_db(transaction=True)
def test_threaded_commit_racing_expiry_keeps_stock_balanced():
    _require_serialized_writes()
    product = ProductFactory(stock=5)
    res = open_reservation(cart_id="cart-1", requested={product.id: 3}, ttl=timedelta(seconds=30))
    later = timezone.now() + timedelta(minutes=1)

    _run_threads(lambda: commit_reservation(res.pk), lambda: expire_reservation(res.pk, now=later))

    res.refresh_from_db()
    item = StockItem.objects.get(product=product)
    assert res.state in (Reservation.STATE_COMMITTED, Reservation.STATE_EXPIRED)
    assert item.available + item.held + item.sold == 5
    assert item.held == 0
    assert find_ledger_drift() == []
