from decimal import Decimal

import pytest
from catalog.tests.factories import ProductFactory
from inventory.selectors import available_quantity
from orders.models import IdempotencyKey, Order
from reservations.models import Reservation
from rest_framework.test import APIClient


def _start(client, product, quantity, cart_id="cart-1", **headers):
    return client.post(
        "/api/v1/checkout/",
        {"cart_id": cart_id, "customer_id": "cust-42", "lines": [{"product_id": product.id, "quantity": quantity}]},
        format="json",
        **headers,
    )


@pytest.mark.django_db
def test_start_confirm_flow():
    product = ProductFactory(name="Fresh Apples", price=Decimal("3.99"), stock=5)
    client = APIClient()

    resp = _start(client, product, 3)
    assert resp.status_code == 201
    body = resp.json()
    assert body["state"] == "reserved"
    assert body["lines"] == [{"product_id": product.id, "quantity": 3}]
    assert body["expires_at"]
    reservation_id = body["reservation_id"]

    resp = client.post(f"/api/v1/checkout/{reservation_id}/confirm/", {"customer_id": "cust-42"}, format="json")
    assert resp.status_code == 200
    assert resp.json()["total"] == "11.97"
    assert resp.json()["customer_id"] == "cust-42"

    again = client.post(f"/api/v1/checkout/{reservation_id}/confirm/", {"customer_id": "cust-42"}, format="json")
    assert again.status_code == 200
    assert again.json()["id"] == resp.json()["id"]
    assert Order.objects.count() == 1


@pytest.mark.django_db
def test_start_out_of_stock_is_409_with_product():
    product = ProductFactory(stock=2)
    resp = _start(APIClient(), product, 3)
    assert resp.status_code == 409
    body = resp.json()
    assert body["code"] == "partial_stock_failure"
    assert body["product_id"] == product.id
    assert body["reason"] == "insufficient_stock"


@pytest.mark.django_db
def test_start_validates_lines():
    client = APIClient()
    resp = client.post("/api/v1/checkout/", {"cart_id": "cart-1", "lines": []}, format="json")
    assert resp.status_code == 400
    resp = client.post(
        "/api/v1/checkout/", {"cart_id": "cart-1", "lines": [{"product_id": 1, "quantity": 0}]}, format="json"
    )
    assert resp.status_code == 400


@pytest.mark.django_db
def test_start_with_idempotency_key_reserves_once():
    product = ProductFactory(stock=10)
    client = APIClient()

    first = _start(client, product, 2, HTTP_IDEMPOTENCY_KEY="abc-123")
    second = _start(client, product, 2, HTTP_IDEMPOTENCY_KEY="abc-123")

    assert first.status_code == second.status_code == 201
    assert first.json() == second.json()
    assert Reservation.objects.count() == 1
    assert available_quantity(product.id) == 8
    assert IdempotencyKey.objects.get().scope == "cart:cart-1"


@pytest.mark.django_db
def test_idempotency_key_reused_with_other_payload_conflicts():
    product = ProductFactory(stock=10)
    client = APIClient()
    _start(client, product, 2, HTTP_IDEMPOTENCY_KEY="abc-123")
    resp = _start(client, product, 4, HTTP_IDEMPOTENCY_KEY="abc-123")
    assert resp.status_code == 409
    assert available_quantity(product.id) == 8


@pytest.mark.django_db
def test_abort_endpoint():
    product = ProductFactory(stock=5)
    client = APIClient()
    reservation_id = _start(client, product, 2).json()["reservation_id"]

    resp = client.post(f"/api/v1/checkout/{reservation_id}/abort/")
    assert resp.status_code == 200
    assert resp.json() == {"reservation_id": reservation_id, "state": "released"}
    assert available_quantity(product.id) == 5

    confirm = client.post(f"/api/v1/checkout/{reservation_id}/confirm/", {"customer_id": "cust-42"}, format="json")
    assert confirm.status_code == 409
    assert confirm.json()["code"] == "invalid_state"


@pytest.mark.django_db
def test_confirm_expired_is_410():
    product = ProductFactory(stock=5)
    client = APIClient()
    reservation_id = _start(client, product, 2).json()["reservation_id"]
    reservation = Reservation.objects.get(pk=reservation_id)
    Reservation.objects.filter(pk=reservation_id).update(expires_at=reservation.created_at)

    resp = client.post(f"/api/v1/checkout/{reservation_id}/confirm/", {"customer_id": "cust-42"}, format="json")
    assert resp.status_code == 410
    assert resp.json()["code"] == "expired"
    assert available_quantity(product.id) == 5


@pytest.mark.django_db
def test_confirm_unknown_reservation_is_404():
    resp = APIClient().post(
        "/api/v1/checkout/0b6f2a4c-1111-4222-8333-444455556666/confirm/", {"customer_id": "c"}, format="json"
    )
    assert resp.status_code == 404
    assert resp.json()["code"] == "not_found"
