"""Checkout attempt tracking.

One row per ``start_checkout`` call. The row follows
``started -> reserved -> confirmed -> placed`` or ends in ``rolled_back``
with the code of the error that stopped it.
"""

from common.choices import CheckoutState
from django.db import models


class CheckoutAttempt(models.Model):
    STATE_STARTED = CheckoutState.STARTED
    STATE_RESERVED = CheckoutState.RESERVED
    STATE_CONFIRMED = CheckoutState.CONFIRMED
    STATE_PLACED = CheckoutState.PLACED
    STATE_ROLLED_BACK = CheckoutState.ROLLED_BACK
    STATE_CHOICES = CheckoutState.choices

    cart_id = models.CharField(max_length=120, db_index=True)
    customer_id = models.CharField(max_length=120, blank=True)
    reservation = models.OneToOneField(
        "reservations.Reservation",
        related_name="checkout_attempt",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
    )
    state = models.CharField(max_length=16, choices=STATE_CHOICES, default=STATE_STARTED, db_index=True)
    failure_code = models.CharField(max_length=64, blank=True)
    order = models.ForeignKey(
        "orders.Order", related_name="checkout_attempts", on_delete=models.SET_NULL, null=True, blank=True
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self) -> str:  # pragma: no cover
        return f"CheckoutAttempt#{self.id} cart={self.cart_id} state={self.state}"
