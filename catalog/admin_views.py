"""Admin endpoints for the inventory screen.

Endpoints are restricted to staff users and use scoped throttling.
"""

from common.exceptions import ServiceError
from drf_spectacular.utils import OpenApiExample, extend_schema, extend_schema_view
from inventory import services as inventory_services
from rest_framework import permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.views import APIView

from . import selectors
from .admin_serializers import DashboardSerializer, ProductAdminSerializer, RestockSerializer
from .models import Product
from .services import remove_product, set_product_status


class AdminBaseViewSet(viewsets.ModelViewSet):
    permission_classes = [permissions.IsAdminUser]
    throttle_scope = "catalog_admin_write"


@extend_schema_view(
    list=extend_schema(tags=["Admin Endpoints"], summary="List products (admin)"),
    retrieve=extend_schema(tags=["Admin Endpoints"], summary="Get product (admin)"),
    create=extend_schema(tags=["Admin Endpoints"], summary="Create product with opening stock"),
    update=extend_schema(tags=["Admin Endpoints"], summary="Update product"),
    partial_update=extend_schema(tags=["Admin Endpoints"], summary="Partial update product"),
    destroy=extend_schema(tags=["Admin Endpoints"], summary="Remove product"),
)
class ProductAdminViewSet(AdminBaseViewSet):
    queryset = Product.objects.select_related("stock").order_by("name", "id")
    serializer_class = ProductAdminSerializer
    filterset_fields = ["status", "category"]
    search_fields = ["name", "description"]
    ordering_fields = ["name", "price", "created_at"]

    def destroy(self, request, *args, **kwargs):
        product = self.get_object()
        try:
            remove_product(product_id=product.id)
        except ServiceError as exc:
            return Response(exc.as_payload(), status=exc.status_code)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        tags=["Admin Endpoints"],
        summary="Restock product",
        description="Adds stock to a product and records a `restock` ledger entry.",
        request=RestockSerializer,
        responses={200: ProductAdminSerializer},
        examples=[OpenApiExample("Restock", value={"quantity": 24, "note": "weekly delivery"}, request_only=True)],
    )
    @action(detail=True, methods=["post"], url_path="restock")
    def restock(self, request, pk=None):
        product = self.get_object()
        serializer = RestockSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            inventory_services.restock(
                product_id=product.id,
                quantity=serializer.validated_data["quantity"],
                reference=serializer.validated_data["note"],
            )
        except ServiceError as exc:
            return Response(exc.as_payload(), status=exc.status_code)
        product = self.get_queryset().get(pk=product.pk)
        return Response(self.get_serializer(product).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Admin Endpoints"], summary="Activate product", request=None)
    @action(detail=True, methods=["post"], url_path="activate")
    def activate(self, request, pk=None):
        return self._set_status(Product.STATUS_ACTIVE)

    @extend_schema(tags=["Admin Endpoints"], summary="Deactivate product", request=None)
    @action(detail=True, methods=["post"], url_path="deactivate")
    def deactivate(self, request, pk=None):
        return self._set_status(Product.STATUS_INACTIVE)

    def _set_status(self, new_status: str):
        product = self.get_object()
        set_product_status(product_id=product.id, status=new_status)
        product = self.get_queryset().get(pk=product.pk)
        return Response(self.get_serializer(product).data, status=status.HTTP_200_OK)


class DashboardView(APIView):
    permission_classes = [permissions.IsAdminUser]
    throttle_scope = "catalog_admin_write"

    @extend_schema(
        tags=["Admin Endpoints"],
        summary="Inventory dashboard",
        description="Product counts, low-stock count and total inventory value (price x available).",
        responses={200: DashboardSerializer},
        examples=[
            OpenApiExample(
                "Dashboard",
                value={
                    "total_products": 6,
                    "active_products": 6,
                    "low_stock_items": 1,
                    "low_stock_threshold": 20,
                    "total_value": "755.75",
                },
                response_only=True,
            )
        ],
    )
    def get(self, request):
        return Response(DashboardSerializer(selectors.dashboard_stats()).data)
