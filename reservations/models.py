"""Reservation models.

A reservation groups per-product holds for one cart and expires after a
fixed horizon. ``state`` only ever moves out of ``open``; see
``reservations.services`` for the guarded transitions.
"""

import uuid

from common.choices import ReservationState
from django.db import models
from django.utils import timezone


class Reservation(models.Model):
    STATE_OPEN = ReservationState.OPEN
    STATE_COMMITTED = ReservationState.COMMITTED
    STATE_RELEASED = ReservationState.RELEASED
    STATE_EXPIRED = ReservationState.EXPIRED
    STATE_CHOICES = ReservationState.choices
    TERMINAL_STATES = (STATE_COMMITTED, STATE_RELEASED, STATE_EXPIRED)

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    cart_id = models.CharField(max_length=120, db_index=True)
    state = models.CharField(max_length=16, choices=STATE_CHOICES, default=STATE_OPEN)
    created_at = models.DateTimeField(auto_now_add=True)
    expires_at = models.DateTimeField()
    closed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["state", "expires_at"], name="reservation_state_expiry_idx"),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"Reservation<{self.id}> cart={self.cart_id} state={self.state}"

    @property
    def is_terminal(self) -> bool:
        return self.state in self.TERMINAL_STATES

    def is_past_expiry(self, now=None) -> bool:
        return (now or timezone.now()) >= self.expires_at

    def held_quantities(self) -> dict[int, int]:
        return {line.product_id: int(line.quantity) for line in self.lines.all()}


class ReservationLine(models.Model):
    reservation = models.ForeignKey(Reservation, related_name="lines", on_delete=models.CASCADE)
    product = models.ForeignKey("catalog.Product", related_name="reservation_lines", on_delete=models.PROTECT)
    quantity = models.PositiveIntegerField()

    class Meta:
        ordering = ["product_id"]
        constraints = [
            models.UniqueConstraint(fields=["reservation", "product"], name="uniq_reservation_line_product"),
            models.CheckConstraint(name="reservation_line_positive_qty", condition=models.Q(quantity__gt=0)),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"ReservationLine<{self.reservation_id}> product={self.product_id} qty={self.quantity}"
