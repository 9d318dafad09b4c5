from datetime import timedelta

import pytest
from django.core.management import call_command
from django.utils import timezone
from orders.models import IdempotencyKey
from orders.services import compute_request_hash, with_idempotency


def _call(handler, key="k1", scope="cart:1", request_hash=None):
    return with_idempotency(
        key=key, scope=scope, path="/api/v1/checkout/", method="post", handler=handler, request_hash=request_hash
    )


@pytest.mark.django_db
def test_replay_returns_stored_response_without_running_handler():
    calls = []

    def handler():
        calls.append(1)
        return {"reservation_id": "abc", "n": len(calls)}, 201

    assert _call(handler) == ({"reservation_id": "abc", "n": 1}, 201)
    assert _call(handler) == ({"reservation_id": "abc", "n": 1}, 201)
    assert len(calls) == 1


@pytest.mark.django_db
def test_same_key_in_another_scope_runs_again():
    calls = []

    def handler():
        calls.append(1)
        return {"ok": True}, 201

    _call(handler, scope="cart:1")
    _call(handler, scope="cart:2")
    assert len(calls) == 2


@pytest.mark.django_db
def test_failed_response_frees_the_key():
    assert _call(lambda: ({"code": "partial_stock_failure"}, 409)) == ({"code": "partial_stock_failure"}, 409)
    assert not IdempotencyKey.objects.exists()
    assert _call(lambda: ({"ok": True}, 201)) == ({"ok": True}, 201)


@pytest.mark.django_db
def test_key_reuse_with_different_payload_conflicts():
    first = compute_request_hash({"cart_id": "1", "lines": [{"product_id": 1, "quantity": 2}]})
    second = compute_request_hash({"cart_id": "1", "lines": [{"product_id": 1, "quantity": 3}]})
    assert first != second

    _call(lambda: ({"ok": True}, 201), request_hash=first)
    body, code = _call(lambda: ({"ok": True}, 201), request_hash=second)
    assert code == 409


def test_request_hash_is_order_independent():
    assert compute_request_hash({"a": 1, "b": 2}) == compute_request_hash({"b": 2, "a": 1})
    assert compute_request_hash({}) is None


@pytest.mark.django_db
def test_cleanup_idempotency_purges_expired_keys():
    _call(lambda: ({"ok": True}, 201), key="old")
    _call(lambda: ({"ok": True}, 201), key="new")
    IdempotencyKey.objects.filter(key="old").update(expires_at=timezone.now() - timedelta(minutes=1))

    call_command("cleanup_idempotency", "--dry-run")
    assert IdempotencyKey.objects.count() == 2

    call_command("cleanup_idempotency")
    assert list(IdempotencyKey.objects.values_list("key", flat=True)) == ["new"]
