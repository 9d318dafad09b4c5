"""Serializers for inventory domain.

Read-only serializers for stock counters and ledger entries.
"""

from rest_framework import serializers

from .models import StockItem, StockLedgerEntry


class StockItemSerializer(serializers.ModelSerializer):
    """Live stock counter for a product, with the product name for convenience."""

    product_name = serializers.CharField(source="product.name", read_only=True)
    unit = serializers.CharField(source="product.unit", read_only=True)

    class Meta:
        model = StockItem
        fields = [
            "id",
            "product",
            "product_name",
            "unit",
            "available",
            "held",
            "sold",
            "updated_at",
        ]
        read_only_fields = fields


class StockLedgerEntrySerializer(serializers.ModelSerializer):
    class Meta:
        model = StockLedgerEntry
        fields = [
            "id",
            "product",
            "reason",
            "delta",
            "quantity",
            "balance",
            "reference",
            "created_at",
        ]
        read_only_fields = fields


# EOF
