"""Order ledger services.

Orders are appended once per committed reservation and never edited; a void
records a reason and timestamp but leaves lines and total as sold.
"""

import hashlib
import json
import logging
import uuid
from collections.abc import Iterable
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable, Optional, Tuple

from common.exceptions import DuplicateReservation, NotFound
from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import QuerySet
from django.utils import timezone

from .models import IdempotencyKey, Order, OrderLine

logger = logging.getLogger("pantry.orders")

CENTS = Decimal("0.01")


def append_order(*, reservation_id, customer_id: str, lines: Iterable[dict]) -> Order:
    """Store a new order for ``reservation_id``.

    Each line is a dict with ``product_id``, ``quantity``, ``unit_price`` and
    optionally ``product_name`` and ``unit``. Raises ``DuplicateReservation``
    when the reservation already has an order.
    """

    lines = list(lines)
    existing = Order.objects.filter(reservation_id=reservation_id).values_list("id", flat=True).first()
    if existing is not None:
        raise DuplicateReservation(reservation_id, order_id=existing)

    total = sum((Decimal(str(line["unit_price"])) * int(line["quantity"]) for line in lines), Decimal("0.00"))
    try:
        with transaction.atomic():
            order = Order.objects.create(
                reservation_id=reservation_id,
                customer_id=str(customer_id),
                total=total.quantize(CENTS),
            )
            OrderLine.objects.bulk_create(
                [
                    OrderLine(
                        order=order,
                        product_id=line["product_id"],
                        product_name=line.get("product_name", ""),
                        unit=line.get("unit", ""),
                        quantity=int(line["quantity"]),
                        unit_price=Decimal(str(line["unit_price"])).quantize(CENTS),
                    )
                    for line in lines
                ]
            )
            order.number = f"ORD-{int(order.id):06d}"
            order.save(update_fields=["number"])
    except IntegrityError:
        # Lost a race with a concurrent append for the same reservation
        existing = Order.objects.filter(reservation_id=reservation_id).values_list("id", flat=True).first()
        if existing is None:
            raise
        raise DuplicateReservation(reservation_id, order_id=existing)

    logger.info(
        "order_placed",
        extra={
            "event": "order_placed",
            "order_id": order.id,
            "number": order.number,
            "reservation_id": str(reservation_id),
            "customer_id": order.customer_id,
            "total": str(order.total),
        },
    )
    return order


def void_order(*, order_id: int, reason: str) -> Order:
    """Mark an order voided. Inventory is not touched; restock separately if goods return."""

    with transaction.atomic():
        try:
            order = Order.objects.select_for_update().get(pk=order_id)
        except (Order.DoesNotExist, ValueError):
            raise NotFound(f"Order {order_id} not found.")
        if order.status == Order.STATUS_VOIDED:
            return order
        order.status = Order.STATUS_VOIDED
        order.void_reason = reason
        order.voided_at = timezone.now()
        order.save(update_fields=["status", "void_reason", "voided_at", "updated_at"])
    logger.info(
        "order_voided",
        extra={"event": "order_voided", "order_id": order.id, "customer_id": order.customer_id, "reason": reason},
    )
    return order


def list_orders(
    *,
    customer_id: Optional[str] = None,
    status: Optional[str] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> QuerySet[Order]:
    """Orders matching the filters, newest first.

    Returns an unevaluated queryset: iterating it runs the query, and
    ``.all()`` gives a fresh pass over current data.
    """

    qs = Order.objects.prefetch_related("lines")
    if customer_id:
        qs = qs.filter(customer_id=customer_id)
    if status:
        qs = qs.filter(status=status)
    if start:
        qs = qs.filter(created_at__gte=start)
    if end:
        qs = qs.filter(created_at__lte=end)
    return qs.order_by("-created_at", "-id")


def with_idempotency(
    *,
    key: str,
    scope: str,
    path: str,
    method: str,
    handler: Callable[[], Tuple[dict, int]],
    request_hash: Optional[str] = None,
) -> Tuple[dict, int]:
    """Run handler idempotently and persist its response for the given key and scope.

    - If a record exists and the stored `request_hash` differs from the provided one, returns 409.
    - If a record exists but response is not yet stored, returns 409 to indicate in-progress.
    - Only successful (2xx) responses are kept; a failed attempt frees the key for a retry.
    """

    method = str(method).upper()
    path = str(path)

    try:
        with transaction.atomic():
            idem = IdempotencyKey.objects.create(
                key=key,
                scope=scope,
                path=path,
                method=method,
                request_hash=request_hash,
                expires_at=timezone.now() + timedelta(hours=settings.IDEMPOTENCY_TTL_HOURS),
            )
    except IntegrityError:
        idem = IdempotencyKey.objects.get(key=key, scope=scope, path=path, method=method)
        # Guard against key reuse with different fingerprints
        if idem.request_hash and request_hash and idem.request_hash != request_hash:
            return {"detail": "Idempotency key reused with different request payload"}, 409
        if idem.response_json is not None and idem.response_code is not None:
            return idem.response_json, int(idem.response_code)
        return {"detail": "Request in progress"}, 409

    try:
        body, code = handler()
    except Exception:
        IdempotencyKey.objects.filter(id=idem.id).delete()
        raise
    if not 200 <= int(code) < 300:
        IdempotencyKey.objects.filter(id=idem.id).delete()
        return body, code

    IdempotencyKey.objects.filter(id=idem.id).update(response_json=_json_safe(body), response_code=code)
    return body, code


def _json_safe(value):
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): _json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(v) for v in value]
    if isinstance(value, uuid.UUID):
        return str(value)
    return value


def compute_request_hash(data: Optional[dict]) -> Optional[str]:
    """Compute a canonical SHA256 hash of the request body.

    Uses sorted keys JSON representation to stabilize the hash across equivalent payloads.
    Returns None when data is falsy.
    """
    if not data:
        return None
    try:
        payload = json.dumps(data, sort_keys=True, separators=(",", ":"), default=str)
    except (TypeError, ValueError):
        return None
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()
