"""Reservation services: cart-scoped holds with a lifetime.

Lock order is always the reservation row first, then stock rows in ascending
product id, so concurrent opens, commits, cancels and sweeps cannot deadlock.

State changes out of ``open`` are compare-and-swap updates
(``UPDATE ... WHERE state = 'open'``). When a commit races a cancel or an
expiry sweep exactly one of them moves the row; the others see a terminal
state and stop without touching stock.
"""

import logging
from collections.abc import Mapping
from datetime import datetime, timedelta
from typing import Optional

from common.exceptions import (
    Expired,
    InsufficientStock,
    InvalidState,
    NotFound,
    PartialStockFailure,
    UnknownProduct,
)
from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone
from inventory import services as inventory_services

from .models import Reservation, ReservationLine

logger = logging.getLogger("pantry.reservations")


def _reference(reservation: Reservation) -> str:
    return f"reservation:{reservation.pk}"


def _normalize_lines(requested: Mapping) -> dict[int, int]:
    lines: dict[int, int] = {}
    for product_id, quantity in dict(requested).items():
        quantity = int(quantity)
        if quantity <= 0:
            raise ValueError("Quantity must be positive")
        lines[int(product_id)] = lines.get(int(product_id), 0) + quantity
    if not lines:
        raise ValueError("At least one line is required")
    return lines


def _lock(reservation_id) -> Reservation:
    try:
        return Reservation.objects.select_for_update().get(pk=reservation_id)
    except (Reservation.DoesNotExist, ValidationError, ValueError):
        raise NotFound(f"Reservation {reservation_id} not found.")


def _swap_state(reservation: Reservation, to_state: str, now: datetime) -> bool:
    updated = Reservation.objects.filter(pk=reservation.pk, state=Reservation.STATE_OPEN).update(
        state=to_state, closed_at=now
    )
    if updated:
        reservation.state = to_state
        reservation.closed_at = now
    return bool(updated)


def _release_holds(reservation: Reservation, to_state: str, now: datetime) -> bool:
    """Move an open reservation to ``released`` or ``expired`` and return its stock.

    Shared by cancel and the expiry sweep; only the caller that wins the state
    swap releases anything.
    """

    if not _swap_state(reservation, to_state, now):
        return False
    for line in reservation.lines.order_by("product_id"):
        inventory_services.release(
            product_id=line.product_id, quantity=line.quantity, reference=_reference(reservation)
        )
    logger.info(
        f"reservation_{to_state}",
        extra={"event": f"reservation_{to_state}", "reservation_id": str(reservation.pk), "cart_id": reservation.cart_id},
    )
    return True


def open_reservation(*, cart_id: str, requested: Mapping, ttl: Optional[timedelta] = None) -> Reservation:
    """Hold every requested line or nothing.

    Lines are held in ascending product id order. The first line that cannot
    be held raises ``PartialStockFailure`` naming that product, and the
    transaction rollback returns every hold already taken in this call.
    """

    lines = _normalize_lines(requested)
    ttl = ttl if ttl is not None else timedelta(minutes=settings.RESERVATION_TTL_MINUTES)
    try:
        with transaction.atomic():
            reservation = Reservation.objects.create(cart_id=str(cart_id), expires_at=timezone.now() + ttl)
            for product_id, quantity in sorted(lines.items()):
                try:
                    inventory_services.try_hold(
                        product_id=product_id, quantity=quantity, reference=_reference(reservation)
                    )
                except (InsufficientStock, UnknownProduct) as exc:
                    raise PartialStockFailure(product_id, cause=exc) from exc
                ReservationLine.objects.create(reservation=reservation, product_id=product_id, quantity=quantity)
    except PartialStockFailure as exc:
        logger.info(
            "reservation_rejected",
            extra={
                "event": "reservation_rejected",
                "cart_id": str(cart_id),
                "product_id": exc.product_id,
                "reason": exc.cause.code if exc.cause else None,
            },
        )
        raise
    logger.info(
        "reservation_opened",
        extra={
            "event": "reservation_opened",
            "reservation_id": str(reservation.pk),
            "cart_id": reservation.cart_id,
            "lines": len(lines),
            "expires_at": reservation.expires_at.isoformat(),
        },
    )
    return reservation


def commit_reservation(reservation_id, *, now: Optional[datetime] = None) -> Reservation:
    """Turn an open reservation's holds into sold stock.

    A reservation found past its deadline is expired (stock released) and
    that outcome is saved before ``Expired`` is raised.
    """

    now = now or timezone.now()
    with transaction.atomic():
        reservation = _lock(reservation_id)
        if reservation.is_terminal:
            raise InvalidState(
                f"Reservation is {reservation.state}, expected open.",
                reservation_id=str(reservation.pk),
                state=reservation.state,
            )
        expired = reservation.is_past_expiry(now)
        if expired:
            won = _release_holds(reservation, Reservation.STATE_EXPIRED, now)
        else:
            won = _swap_state(reservation, Reservation.STATE_COMMITTED, now)
        if not won:
            reservation.refresh_from_db(fields=["state"])
            raise InvalidState(
                f"Reservation is {reservation.state}, expected open.",
                reservation_id=str(reservation.pk),
                state=reservation.state,
            )
        if not expired:
            for line in reservation.lines.order_by("product_id"):
                inventory_services.finalize(
                    product_id=line.product_id, quantity=line.quantity, reference=_reference(reservation)
                )
    if expired:
        raise Expired(reservation_id=str(reservation.pk), expires_at=reservation.expires_at.isoformat())
    logger.info(
        "reservation_committed",
        extra={"event": "reservation_committed", "reservation_id": str(reservation.pk), "cart_id": reservation.cart_id},
    )
    return reservation


def cancel_reservation(reservation_id, *, now: Optional[datetime] = None) -> Reservation:
    """Release an open reservation. Terminal reservations are returned unchanged."""

    now = now or timezone.now()
    with transaction.atomic():
        reservation = _lock(reservation_id)
        if not reservation.is_terminal:
            _release_holds(reservation, Reservation.STATE_RELEASED, now)
    return reservation


def expire_reservation(reservation_id, *, now: Optional[datetime] = None) -> bool:
    """Expire one reservation if it is still open and past its deadline."""

    now = now or timezone.now()
    with transaction.atomic():
        try:
            reservation = _lock(reservation_id)
        except NotFound:
            return False
        if reservation.is_terminal or not reservation.is_past_expiry(now):
            return False
        return _release_holds(reservation, Reservation.STATE_EXPIRED, now)


def sweep_expired(*, now: Optional[datetime] = None, limit: Optional[int] = None) -> int:
    """Expire every open reservation past its deadline; returns how many.

    Each reservation is handled in its own transaction so a long sweep never
    holds stock locks for more than one reservation at a time.
    """

    now = now or timezone.now()
    qs = Reservation.objects.filter(state=Reservation.STATE_OPEN, expires_at__lte=now).order_by("expires_at")
    ids = list(qs.values_list("id", flat=True)[:limit] if limit else qs.values_list("id", flat=True))
    count = sum(1 for reservation_id in ids if expire_reservation(reservation_id, now=now))
    if count:
        logger.info("reservations_swept", extra={"event": "reservations_swept", "count": count})
    return count
