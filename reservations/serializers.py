"""Read-only serializers for reservations."""

from rest_framework import serializers

from .models import Reservation, ReservationLine


class ReservationLineSerializer(serializers.ModelSerializer):
    class Meta:
        model = ReservationLine
        fields = ["product", "quantity"]
        read_only_fields = fields


class ReservationSerializer(serializers.ModelSerializer):
    lines = ReservationLineSerializer(many=True, read_only=True)

    class Meta:
        model = Reservation
        fields = ["id", "cart_id", "state", "lines", "created_at", "expires_at", "closed_at"]
        read_only_fields = fields
