from decimal import Decimal

from common.choices import OrderStatus
from django.db import models


class TimeStampedModel(models.Model):
    """Abstract base model adding created/updated timestamps."""

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class Order(TimeStampedModel):
    """A finalized sale, created from exactly one committed reservation.

    Lines and total are never changed after placement; voiding only flips the
    status and records why.
    """

    STATUS_PLACED = OrderStatus.PLACED
    STATUS_VOIDED = OrderStatus.VOIDED
    STATUS_CHOICES = OrderStatus.choices

    reservation = models.OneToOneField(
        "reservations.Reservation", related_name="order", on_delete=models.PROTECT
    )
    number = models.CharField(max_length=32, unique=True, null=True, blank=True, db_index=True)
    customer_id = models.CharField(max_length=120, db_index=True)
    total = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_PLACED, db_index=True)
    void_reason = models.CharField(max_length=255, blank=True)
    voided_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["customer_id", "status", "created_at"], name="order_customer_status_idx"),
        ]
        constraints = [
            models.CheckConstraint(name="order_total_non_negative", condition=models.Q(total__gte=0)),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"Order#{self.id} customer={self.customer_id} status={self.status}"


class OrderLine(models.Model):
    """Line item snapshot: product name and unit price at time of sale."""

    order = models.ForeignKey(Order, related_name="lines", on_delete=models.CASCADE)
    product = models.ForeignKey("catalog.Product", related_name="order_lines", on_delete=models.PROTECT)
    product_name = models.CharField(max_length=200, blank=True)
    unit = models.CharField(max_length=32, blank=True)
    quantity = models.PositiveIntegerField()
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)

    class Meta:
        ordering = ["id"]
        constraints = [
            models.UniqueConstraint(fields=["order", "product"], name="uniq_order_line_product"),
            models.CheckConstraint(name="orderline_price_non_negative", condition=models.Q(unit_price__gte=0)),
            models.CheckConstraint(name="orderline_positive_qty", condition=models.Q(quantity__gt=0)),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"OrderLine#{self.id} order={self.order_id} product={self.product_id} qty={self.quantity}"

    @property
    def line_total(self) -> Decimal:
        return (self.unit_price or Decimal("0.00")) * Decimal(int(self.quantity))


class IdempotencyKey(models.Model):
    """Stores idempotent request results to prevent duplicate processing."""

    key = models.CharField(max_length=128)
    scope = models.CharField(max_length=128)
    path = models.CharField(max_length=255)
    method = models.CharField(max_length=16)
    request_hash = models.CharField(max_length=64, null=True, blank=True)
    response_code = models.IntegerField(null=True, blank=True)
    response_json = models.JSONField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    expires_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["key", "scope", "path", "method"], name="uniq_idem_scope_path_method"),
        ]
