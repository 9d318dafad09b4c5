"""DRF serializers for the order ledger."""

from rest_framework import serializers

from .models import Order, OrderLine


class OrderLineSerializer(serializers.ModelSerializer):
    """Sold line with its computed line_total."""

    line_total = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)

    class Meta:
        model = OrderLine
        fields = [
            "product",
            "product_name",
            "unit",
            "quantity",
            "unit_price",
            "line_total",
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    lines = OrderLineSerializer(many=True, read_only=True)
    reservation_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "number",
            "reservation_id",
            "customer_id",
            "status",
            "total",
            "lines",
            "created_at",
            "void_reason",
            "voided_at",
        ]
        read_only_fields = fields


class VoidOrderSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=255)


class OrderQuerySerializer(serializers.Serializer):
    """Query parameters accepted by the order list."""

    customer_id = serializers.CharField(max_length=120, required=False)
    status = serializers.ChoiceField(choices=Order.STATUS_CHOICES, required=False)
    start = serializers.DateTimeField(required=False)
    end = serializers.DateTimeField(required=False)
