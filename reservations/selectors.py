"""Read-only helpers for reservations."""

from typing import Optional

from django.core.exceptions import ValidationError
from django.db.models import QuerySet

from .models import Reservation


def get_reservation(reservation_id) -> Optional[Reservation]:
    try:
        return Reservation.objects.prefetch_related("lines").get(pk=reservation_id)
    except (Reservation.DoesNotExist, ValidationError, ValueError):
        return None


def list_reservations(*, state: Optional[str] = None, cart_id: Optional[str] = None) -> QuerySet[Reservation]:
    qs = Reservation.objects.prefetch_related("lines").order_by("-created_at")
    if state:
        qs = qs.filter(state=state)
    if cart_id:
        qs = qs.filter(cart_id=cart_id)
    return qs
