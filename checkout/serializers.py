"""Serializers for checkout requests and responses."""

from rest_framework import serializers

from .models import CheckoutAttempt


class CheckoutLineSerializer(serializers.Serializer):
    product_id = serializers.IntegerField(min_value=1)
    quantity = serializers.IntegerField(min_value=1)


class StartCheckoutSerializer(serializers.Serializer):
    cart_id = serializers.CharField(max_length=120)
    customer_id = serializers.CharField(max_length=120, required=False, allow_blank=True, default="")
    lines = CheckoutLineSerializer(many=True, allow_empty=False)


class ConfirmCheckoutSerializer(serializers.Serializer):
    customer_id = serializers.CharField(max_length=120)


class CheckoutAttemptSerializer(serializers.ModelSerializer):
    """Attempt with the reservation it holds, if any."""

    attempt_id = serializers.IntegerField(source="id", read_only=True)
    reservation_id = serializers.UUIDField(read_only=True, allow_null=True)
    expires_at = serializers.SerializerMethodField()
    lines = serializers.SerializerMethodField()

    class Meta:
        model = CheckoutAttempt
        fields = ["attempt_id", "cart_id", "customer_id", "state", "reservation_id", "expires_at", "lines"]
        read_only_fields = fields

    def get_expires_at(self, obj):
        if obj.reservation is None:
            return None
        return serializers.DateTimeField().to_representation(obj.reservation.expires_at)

    def get_lines(self, obj):
        if obj.reservation is None:
            return []
        return [
            {"product_id": product_id, "quantity": quantity}
            for product_id, quantity in sorted(obj.reservation.held_quantities().items())
        ]
