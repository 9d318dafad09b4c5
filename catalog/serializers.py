"""Read-only serializers for the storefront catalog."""

from rest_framework import serializers

from .models import Product


def _available(obj: Product) -> int:
    stock = getattr(obj, "stock", None)
    return int(stock.available) if stock is not None else 0


class ProductSerializer(serializers.ModelSerializer):
    """Storefront representation of a product with its current availability."""

    available = serializers.SerializerMethodField(read_only=True)
    in_stock = serializers.SerializerMethodField(read_only=True)

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
            "available",
            "in_stock",
        ]
        read_only_fields = fields

    def get_available(self, obj: Product) -> int:
        return _available(obj)

    def get_in_stock(self, obj: Product) -> bool:
        return _available(obj) > 0
