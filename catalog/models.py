"""Catalog app models.

A single flat product table: the storefront browses it by category and text,
the admin screen creates, edits, deactivates and removes rows. Stock counts
are not stored here; see ``inventory.StockItem``.
"""

from decimal import Decimal

from common.choices import ActiveInactive
from django.db import models


class TimeStampedModel(models.Model):
    """Abstract base model adding created/updated timestamps."""

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class Product(TimeStampedModel):
    """Sellable grocery product (e.g. "Fresh Apples", priced per lb)."""

    STATUS_ACTIVE = ActiveInactive.ACTIVE
    STATUS_INACTIVE = ActiveInactive.INACTIVE
    STATUS_CHOICES = ActiveInactive.choices

    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    category = models.CharField(max_length=80, db_index=True)
    unit = models.CharField(max_length=32, blank=True)
    image_url = models.URLField(max_length=500, blank=True)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_ACTIVE, db_index=True)

    class Meta:
        ordering = ["name", "id"]
        constraints = [
            models.CheckConstraint(name="product_price_non_negative", condition=models.Q(price__gte=0)),
        ]
        indexes = [
            models.Index(fields=["category", "status"], name="product_category_status_idx"),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.name} ({self.unit})" if self.unit else self.name

    @property
    def is_active(self) -> bool:
        return self.status == self.STATUS_ACTIVE
