"""Admin serializers for write endpoints in the catalog app."""

from decimal import Decimal

from rest_framework import serializers

from .models import Product
from .serializers import _available
from .services import create_product


class ProductAdminSerializer(serializers.ModelSerializer):
    """Create/edit products from the admin inventory screen.

    ``initial_stock`` is accepted on create only; later stock changes go
    through the restock endpoint so the ledger records them.
    """

    price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal("0.01"))
    initial_stock = serializers.IntegerField(min_value=0, required=False, default=0, write_only=True)
    available = serializers.SerializerMethodField(read_only=True)
    held = serializers.SerializerMethodField(read_only=True)
    sold = serializers.SerializerMethodField(read_only=True)

    class Meta:
        model = Product
        fields = [
            "id",
            "name",
            "description",
            "price",
            "category",
            "unit",
            "image_url",
            "status",
            "initial_stock",
            "available",
            "held",
            "sold",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "available", "held", "sold", "created_at", "updated_at"]
        extra_kwargs = {"category": {"allow_blank": False}, "name": {"allow_blank": False}}

    def get_available(self, obj: Product) -> int:
        return _available(obj)

    def get_held(self, obj: Product) -> int:
        stock = getattr(obj, "stock", None)
        return int(stock.held) if stock is not None else 0

    def get_sold(self, obj: Product) -> int:
        stock = getattr(obj, "stock", None)
        return int(stock.sold) if stock is not None else 0

    def create(self, validated_data):
        return create_product(**validated_data)

    def update(self, instance, validated_data):
        validated_data.pop("initial_stock", None)
        return super().update(instance, validated_data)


class RestockSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=1)
    note = serializers.CharField(max_length=120, required=False, allow_blank=True, default="")


class DashboardSerializer(serializers.Serializer):
    total_products = serializers.IntegerField()
    active_products = serializers.IntegerField()
    low_stock_items = serializers.IntegerField()
    low_stock_threshold = serializers.IntegerField()
    total_value = serializers.DecimalField(max_digits=18, decimal_places=2)
