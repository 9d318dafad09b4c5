"""Checkout endpoints: start, confirm and abort."""

from common.exceptions import ServiceError
from drf_spectacular.utils import OpenApiExample, OpenApiParameter, extend_schema, inline_serializer
from orders.serializers import OrderSerializer
from orders.services import compute_request_hash, with_idempotency
from rest_framework import serializers as rf_serializers
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from .serializers import CheckoutAttemptSerializer, ConfirmCheckoutSerializer, StartCheckoutSerializer
from .services import abort_checkout, confirm_checkout, start_checkout

ERROR_RESPONSE = inline_serializer(
    name="CheckoutError",
    fields={"detail": rf_serializers.CharField(), "code": rf_serializers.CharField()},
)


class StartCheckoutView(APIView):
    """Reserve the cart's lines for the checkout window."""

    throttle_scope = "checkout_write"

    @extend_schema(
        tags=["Checkout"],
        summary="Start checkout",
        description="Holds every line or none. Stock is held until confirm, abort or expiry.",
        request=StartCheckoutSerializer,
        parameters=[
            OpenApiParameter(
                name="Idempotency-Key",
                location=OpenApiParameter.HEADER,
                required=False,
                description="When provided, retries with the same key and cart return the first reservation",
                type=str,
            )
        ],
        responses={201: CheckoutAttemptSerializer, 404: ERROR_RESPONSE, 409: ERROR_RESPONSE},
        examples=[
            OpenApiExample(
                "Start",
                value={"cart_id": "cart-1", "customer_id": "cust-42", "lines": [{"product_id": 1, "quantity": 3}]},
                request_only=True,
            ),
            OpenApiExample(
                "Out of stock",
                value={
                    "detail": "One of the requested lines cannot be reserved.",
                    "code": "partial_stock_failure",
                    "product_id": 2,
                    "reason": "insufficient_stock",
                },
                response_only=True,
                status_codes=["409"],
            ),
        ],
    )
    def post(self, request):
        serializer = StartCheckoutSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        def _start_handler():
            try:
                attempt = start_checkout(cart_id=data["cart_id"], lines=data["lines"], customer_id=data["customer_id"])
            except ServiceError as exc:
                return exc.as_payload(), exc.status_code
            return CheckoutAttemptSerializer(attempt).data, status.HTTP_201_CREATED

        idem_key = request.headers.get("Idempotency-Key")
        if idem_key:
            body, code = with_idempotency(
                key=idem_key,
                scope=f"cart:{data['cart_id']}",
                path=str(request.path),
                method=str(request.method),
                handler=_start_handler,
                request_hash=compute_request_hash(request.data),
            )
            return Response(body, status=code)
        body, code = _start_handler()
        return Response(body, status=code)


class ConfirmCheckoutView(APIView):
    """Commit the reservation and place the order. Safe to retry."""

    throttle_scope = "checkout_write"

    @extend_schema(
        tags=["Checkout"],
        summary="Confirm checkout",
        description=(
            "Places the order for a reservation. Repeating the call returns the same order. "
            "A 500 with code checkout_inconsistent means stock was sold but the order was not "
            "written; call confirm again to finish."
        ),
        request=ConfirmCheckoutSerializer,
        responses={200: OrderSerializer, 404: ERROR_RESPONSE, 409: ERROR_RESPONSE, 410: ERROR_RESPONSE},
        examples=[OpenApiExample("Confirm", value={"customer_id": "cust-42"}, request_only=True)],
    )
    def post(self, request, reservation_id):
        serializer = ConfirmCheckoutSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            order = confirm_checkout(reservation_id=reservation_id, customer_id=serializer.validated_data["customer_id"])
        except ServiceError as exc:
            return Response(exc.as_payload(), status=exc.status_code)
        return Response(OrderSerializer(order).data, status=status.HTTP_200_OK)


class AbortCheckoutView(APIView):
    """Give the held stock back before confirming."""

    throttle_scope = "checkout_write"

    @extend_schema(
        tags=["Checkout"],
        summary="Abort checkout",
        request=None,
        responses={
            200: inline_serializer(
                name="CheckoutAborted",
                fields={"reservation_id": rf_serializers.UUIDField(), "state": rf_serializers.CharField()},
            ),
            404: ERROR_RESPONSE,
            409: ERROR_RESPONSE,
        },
    )
    def post(self, request, reservation_id):
        try:
            reservation = abort_checkout(reservation_id=reservation_id)
        except ServiceError as exc:
            return Response(exc.as_payload(), status=exc.status_code)
        return Response({"reservation_id": str(reservation.pk), "state": reservation.state}, status=status.HTTP_200_OK)
