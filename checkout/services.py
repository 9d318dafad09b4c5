"""Checkout coordinator.

Ties a cart's reservation to the order ledger. ``confirm_checkout`` is safe to
retry with the same reservation id: a reservation gets at most one order, and
a retry after a failed order write finishes the job without touching stock
again.
"""

import logging
from collections.abc import Iterable, Mapping

import sentry_sdk
from common.exceptions import CheckoutInconsistent, DuplicateReservation, InvalidState, NotFound, ServiceError
from orders.models import Order
from orders.services import append_order
from reservations.models import Reservation
from reservations.selectors import get_reservation
from reservations.services import cancel_reservation, commit_reservation, open_reservation

from .models import CheckoutAttempt

logger = logging.getLogger("pantry.checkout")

INVALID_REQUEST = "invalid_request"


def _requested(lines) -> dict[int, int]:
    if isinstance(lines, Mapping):
        return dict(lines)
    requested: dict[int, int] = {}
    for line in lines:
        product_id = int(line["product_id"])
        requested[product_id] = requested.get(product_id, 0) + int(line["quantity"])
    return requested


def _mark(attempt: CheckoutAttempt, state: str, **fields) -> CheckoutAttempt:
    attempt.state = state
    for name, value in fields.items():
        setattr(attempt, name, value)
    attempt.save(update_fields=["state", *fields.keys(), "updated_at"])
    return attempt


def _attempt_for(reservation: Reservation, customer_id: str = "") -> CheckoutAttempt:
    attempt, _ = CheckoutAttempt.objects.get_or_create(
        reservation=reservation,
        defaults={"cart_id": reservation.cart_id, "customer_id": customer_id, "state": CheckoutAttempt.STATE_RESERVED},
    )
    return attempt


def _load(reservation_id) -> Reservation:
    reservation = get_reservation(reservation_id)
    if reservation is None:
        raise NotFound(f"Reservation {reservation_id} not found.")
    return reservation


def _existing_order(reservation: Reservation, customer_id: str):
    order = Order.objects.filter(reservation_id=reservation.pk).first()
    if order is not None and order.customer_id != str(customer_id):
        raise InvalidState(
            "Reservation was placed by a different customer.",
            reservation_id=str(reservation.pk),
            order_id=order.id,
        )
    return order


def _order_lines(reservation: Reservation) -> list[dict]:
    """Held lines priced at the current catalog price."""

    return [
        {
            "product_id": line.product_id,
            "quantity": line.quantity,
            "unit_price": line.product.price,
            "product_name": line.product.name,
            "unit": line.product.unit,
        }
        for line in reservation.lines.select_related("product").order_by("product_id")
    ]


def start_checkout(*, cart_id: str, lines: Iterable, customer_id: str = "") -> CheckoutAttempt:
    """Reserve every line of the cart and return the attempt.

    A failure leaves the attempt ``rolled_back`` with the error code and
    re-raises the error; no stock is held in that case.
    """

    attempt = CheckoutAttempt.objects.create(cart_id=str(cart_id), customer_id=str(customer_id or ""))
    try:
        reservation = open_reservation(cart_id=cart_id, requested=_requested(lines))
    except (ServiceError, ValueError, KeyError, TypeError) as exc:
        # Malformed lines carry no service code
        code = getattr(exc, "code", INVALID_REQUEST)
        _mark(attempt, CheckoutAttempt.STATE_ROLLED_BACK, failure_code=code)
        logger.info(
            "checkout_rejected",
            extra={"event": "checkout_rejected", "attempt_id": attempt.id, "cart_id": attempt.cart_id, "code": code},
        )
        raise
    _mark(attempt, CheckoutAttempt.STATE_RESERVED, reservation=reservation)
    logger.info(
        "checkout_reserved",
        extra={
            "event": "checkout_reserved",
            "attempt_id": attempt.id,
            "cart_id": attempt.cart_id,
            "reservation_id": str(reservation.pk),
        },
    )
    return attempt


def confirm_checkout(*, reservation_id, customer_id: str) -> Order:
    """Commit the reservation and record its order.

    Returns the existing order when the reservation was already placed. If
    stock was committed but the order write fails, ``CheckoutInconsistent``
    is raised and the same call can be repeated to complete the order.
    """

    reservation = _load(reservation_id)
    attempt = _attempt_for(reservation, customer_id=str(customer_id))

    order = _existing_order(reservation, customer_id)
    if order is not None:
        if attempt.state != CheckoutAttempt.STATE_PLACED:
            _mark(attempt, CheckoutAttempt.STATE_PLACED, order=order)
        return order

    if reservation.state != Reservation.STATE_COMMITTED:
        try:
            reservation = commit_reservation(reservation.pk)
        except InvalidState:
            # A concurrent confirm may have committed it first
            reservation.refresh_from_db(fields=["state"])
            if reservation.state != Reservation.STATE_COMMITTED:
                _mark(attempt, CheckoutAttempt.STATE_ROLLED_BACK, failure_code=InvalidState.code)
                raise
        except ServiceError as exc:
            _mark(attempt, CheckoutAttempt.STATE_ROLLED_BACK, failure_code=exc.code)
            logger.info(
                "checkout_rolled_back",
                extra={"event": "checkout_rolled_back", "reservation_id": str(reservation.pk), "code": exc.code},
            )
            raise

    _mark(attempt, CheckoutAttempt.STATE_CONFIRMED, customer_id=str(customer_id))
    try:
        order = append_order(reservation_id=reservation.pk, customer_id=customer_id, lines=_order_lines(reservation))
    except DuplicateReservation:
        order = _existing_order(reservation, customer_id)
    except Exception as exc:
        logger.error(
            "checkout_inconsistent",
            extra={
                "event": "checkout_inconsistent",
                "reservation_id": str(reservation.pk),
                "cart_id": reservation.cart_id,
                "customer_id": str(customer_id),
            },
            exc_info=True,
        )
        sentry_sdk.capture_exception(exc)
        raise CheckoutInconsistent(reservation.pk) from exc

    _mark(attempt, CheckoutAttempt.STATE_PLACED, order=order)
    logger.info(
        "checkout_placed",
        extra={
            "event": "checkout_placed",
            "reservation_id": str(reservation.pk),
            "order_id": order.id,
            "customer_id": order.customer_id,
        },
    )
    return order


def abort_checkout(*, reservation_id) -> Reservation:
    """Release the reservation of an unconfirmed checkout. Repeating it is a no-op."""

    reservation = _load(reservation_id)
    if reservation.state == Reservation.STATE_COMMITTED:
        raise InvalidState("Checkout was already confirmed.", reservation_id=str(reservation.pk))
    reservation = cancel_reservation(reservation.pk)
    if reservation.state == Reservation.STATE_COMMITTED:
        raise InvalidState("Checkout was already confirmed.", reservation_id=str(reservation.pk))

    attempt = _attempt_for(reservation)
    if attempt.state != CheckoutAttempt.STATE_ROLLED_BACK:
        _mark(attempt, CheckoutAttempt.STATE_ROLLED_BACK, failure_code="aborted")
        logger.info(
            "checkout_aborted",
            extra={"event": "checkout_aborted", "reservation_id": str(reservation.pk), "cart_id": reservation.cart_id},
        )
    return reservation
