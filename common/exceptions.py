"""Error taxonomy shared by the inventory, reservation, order and checkout services.

Every failure a caller can act on is a ``ServiceError`` subclass. Views turn
them into responses with ``as_payload()`` and ``status_code``.
"""


class ServiceError(Exception):
    code = "service_error"
    status_code = 400
    default_detail = "Unable to complete request."

    def __init__(self, detail: str | None = None, **context):
        self.detail = detail or self.default_detail
        self.context = context
        super().__init__(self.detail)

    def as_payload(self) -> dict:
        return {"detail": self.detail, "code": self.code, **self.context}


class UnknownProduct(ServiceError):
    code = "unknown_product"
    status_code = 404
    default_detail = "Product is not registered for stock."

    def __init__(self, product_id, detail: str | None = None):
        self.product_id = product_id
        super().__init__(detail, product_id=product_id)


class InsufficientStock(ServiceError):
    code = "insufficient_stock"
    status_code = 409
    default_detail = "Insufficient stock."

    def __init__(self, product_id, requested: int, available: int, detail: str | None = None):
        self.product_id = product_id
        self.requested = requested
        self.available = available
        super().__init__(detail, product_id=product_id, requested=requested, available=available)


class PartialStockFailure(ServiceError):
    """A reservation could not hold one of its lines; nothing was held."""

    code = "partial_stock_failure"
    status_code = 409
    default_detail = "One of the requested lines cannot be reserved."

    def __init__(self, product_id, cause: ServiceError | None = None):
        self.product_id = product_id
        self.cause = cause
        context = {"product_id": product_id}
        if cause is not None:
            context["reason"] = cause.code
        super().__init__(None, **context)


class InvalidState(ServiceError):
    code = "invalid_state"
    status_code = 409
    default_detail = "Operation is not valid in the current state."


class NotFound(ServiceError):
    code = "not_found"
    status_code = 404
    default_detail = "Not found."


class Expired(ServiceError):
    code = "expired"
    status_code = 410
    default_detail = "Reservation has expired."


class DuplicateReservation(ServiceError):
    code = "duplicate_reservation"
    status_code = 409
    default_detail = "An order already exists for this reservation."

    def __init__(self, reservation_id, order_id=None):
        self.reservation_id = reservation_id
        self.order_id = order_id
        super().__init__(None, reservation_id=str(reservation_id), order_id=order_id)


class CheckoutInconsistent(ServiceError):
    """Stock was committed but the order could not be written.

    Retry ``confirm`` with the same reservation id to complete the order.
    """

    code = "checkout_inconsistent"
    status_code = 500
    default_detail = "Checkout committed stock but the order was not recorded; retry confirm."

    def __init__(self, reservation_id, detail: str | None = None):
        self.reservation_id = reservation_id
        super().__init__(detail, reservation_id=str(reservation_id))
