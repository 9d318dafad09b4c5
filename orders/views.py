"""Orders API endpoints.

Storefront clients list their own orders by ``customer_id``; staff can void.
"""

from common.exceptions import ServiceError
from django.http import Http404
from drf_spectacular.utils import OpenApiExample, OpenApiParameter, extend_schema
from rest_framework import generics
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import IsAdminUser
from rest_framework.response import Response
from rest_framework.views import APIView

from .models import Order
from .serializers import OrderQuerySerializer, OrderSerializer, VoidOrderSerializer
from .services import list_orders, void_order


class DefaultPagination(PageNumberPagination):
    page_size = 20
    page_size_query_param = "page_size"


class OrderListView(generics.ListAPIView):
    """List orders with basic filters.

    Filters:
    - `customer_id`: orders placed by this customer
    - `status`: `placed` or `voided`
    - `start`: ISO date/time string; filters `created_at >= start`
    - `end`: ISO date/time string; filters `created_at <= end`
    """

    serializer_class = OrderSerializer
    pagination_class = DefaultPagination
    throttle_scope = "orders"

    def get_queryset(self):
        params = {key: value for key, value in self.request.query_params.items() if value}
        query = OrderQuerySerializer(data=params)
        query.is_valid(raise_exception=True)
        return list_orders(**query.validated_data)

    @extend_schema(
        tags=["Orders"],
        summary="List orders",
        description="Order history, newest first, with optional filters and pagination.",
        parameters=[
            OpenApiParameter(name="customer_id", description="Placing customer", required=False, type=str),
            OpenApiParameter(name="status", description="placed or voided", required=False, type=str),
            OpenApiParameter(name="start", description="Created at >= start (ISO)", required=False, type=str),
            OpenApiParameter(name="end", description="Created at <= end (ISO)", required=False, type=str),
            OpenApiParameter(name="page", description="Page number", required=False, type=int),
            OpenApiParameter(name="page_size", description="Items per page", required=False, type=int),
        ],
    )
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)


class OrderDetailView(generics.RetrieveAPIView):
    serializer_class = OrderSerializer
    throttle_scope = "orders"

    def get_object(self):
        try:
            return Order.objects.prefetch_related("lines").get(id=int(self.kwargs["order_id"]))
        except (Order.DoesNotExist, ValueError):
            raise Http404("Not found.")

    @extend_schema(
        tags=["Orders"],
        summary="Get order detail",
        examples=[
            OpenApiExample(
                "Placed order",
                value={
                    "id": 1,
                    "number": "ORD-000001",
                    "reservation_id": "6f1c2e8a-3d1b-4c55-9d57-1f0b8f1e2a10",
                    "customer_id": "cust-42",
                    "status": "placed",
                    "total": "11.97",
                    "lines": [
                        {
                            "product": 1,
                            "product_name": "Fresh Apples",
                            "unit": "lb",
                            "quantity": 3,
                            "unit_price": "3.99",
                            "line_total": "11.97",
                        }
                    ],
                    "created_at": "2025-01-01T12:00:00Z",
                    "void_reason": "",
                    "voided_at": None,
                },
                response_only=True,
            )
        ],
    )
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)


class OrderVoidView(APIView):
    """Void an order. Stock is not returned; restock separately if goods come back."""

    permission_classes = [IsAdminUser]
    throttle_scope = "orders_write"

    @extend_schema(
        tags=["Orders"],
        summary="Void order",
        description="Marks the order voided with a reason. Voiding twice is a no-op.",
        request=VoidOrderSerializer,
        responses={200: OrderSerializer},
        examples=[OpenApiExample("Void", value={"reason": "customer refund"}, request_only=True)],
    )
    def post(self, request, order_id: int):
        serializer = VoidOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            order = void_order(order_id=order_id, reason=serializer.validated_data["reason"])
        except ServiceError as exc:
            return Response(exc.as_payload(), status=exc.status_code)
        order = Order.objects.prefetch_related("lines").get(pk=order.pk)
        return Response(OrderSerializer(order).data, status=200)
