"""Inventory health and read-only list views for staff."""

from django.conf import settings
from django.utils.dateparse import parse_datetime
from drf_spectacular.utils import OpenApiExample, OpenApiParameter, extend_schema
from rest_framework import generics, permissions
from rest_framework.response import Response
from rest_framework.views import APIView

from . import selectors
from .models import StockItem
from .serializers import StockItemSerializer, StockLedgerEntrySerializer


class InventoryHealthView(APIView):
    throttle_classes = []

    @extend_schema(
        tags=["Inventory Endpoints"],
        summary="Inventory health",
        description="Reports whether every stock counter matches its ledger.",
        examples=[OpenApiExample("Health OK", value={"status": "ok", "app": "inventory", "drift": 0})],
    )
    def get(self, request):
        drift = selectors.find_ledger_drift()
        return Response({"status": "ok" if not drift else "drift", "app": "inventory", "drift": len(drift)})


class StockItemListView(generics.ListAPIView):
    permission_classes = [permissions.IsAdminUser]
    throttle_classes = []
    serializer_class = StockItemSerializer

    @extend_schema(
        tags=["Inventory Endpoints"],
        summary="List stock counters",
        description="Current stock per product. Filters: product_id, category, low_stock (true/false).",
        parameters=[
            OpenApiParameter(name="product_id", required=False, type=int),
            OpenApiParameter(name="category", required=False, type=str),
            OpenApiParameter(name="low_stock", description="Below LOW_STOCK_THRESHOLD", required=False, type=bool),
        ],
        examples=[
            OpenApiExample(
                "Stock Items",
                value={
                    "results": [
                        {
                            "id": 1,
                            "product": 4,
                            "product_name": "Sourdough Bread",
                            "unit": "loaf",
                            "available": 12,
                            "held": 2,
                            "sold": 1,
                            "updated_at": "2025-01-01T12:00:00Z",
                        }
                    ]
                },
            )
        ],
    )
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)

    def get_queryset(self):
        if self.request.query_params.get("low_stock", "").lower() in ("1", "true", "yes"):
            qs = selectors.low_stock(settings.LOW_STOCK_THRESHOLD)
        else:
            qs = StockItem.objects.select_related("product").order_by("product__name", "id")
        product_id = self.request.query_params.get("product_id")
        category = self.request.query_params.get("category")
        if product_id:
            qs = qs.filter(product_id=product_id)
        if category:
            qs = qs.filter(product__category=category)
        return qs


class LedgerListView(generics.ListAPIView):
    permission_classes = [permissions.IsAdminUser]
    throttle_classes = []
    serializer_class = StockLedgerEntrySerializer

    @extend_schema(
        tags=["Inventory Endpoints"],
        summary="List stock ledger entries",
        description=(
            "Append-only stock history, newest first. "
            "Filters: product_id, reason (restock/reserve/release/commit), reference, created_after (ISO)."
        ),
    )
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)

    def get_queryset(self):
        params = self.request.query_params
        created_after = params.get("created_after")
        return selectors.list_ledger(
            product_id=params.get("product_id") or None,
            reason=params.get("reason") or None,
            reference=params.get("reference") or None,
            created_after=parse_datetime(created_after) if created_after else None,
        )


# EOF
