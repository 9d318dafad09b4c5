"""Inventory models.

``StockItem`` is the live per-product counter; ``StockLedgerEntry`` is the
append-only audit trail it is derived from. ``available`` always equals the
sum of the product's ledger deltas.
"""

from common.choices import LedgerReason
from django.db import models


class TimeStampedModel(models.Model):
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class StockItem(TimeStampedModel):
    product = models.OneToOneField("catalog.Product", related_name="stock", on_delete=models.CASCADE)
    available = models.IntegerField(default=0)
    held = models.IntegerField(default=0)
    sold = models.IntegerField(default=0)

    class Meta:
        ordering = ["-updated_at", "id"]
        constraints = [
            models.CheckConstraint(name="stock_available_non_negative", condition=models.Q(available__gte=0)),
            models.CheckConstraint(name="stock_held_non_negative", condition=models.Q(held__gte=0)),
            models.CheckConstraint(name="stock_sold_non_negative", condition=models.Q(sold__gte=0)),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"StockItem<{self.product_id}> a={self.available} h={self.held} s={self.sold}"


class StockLedgerEntry(models.Model):
    REASON_RESTOCK = LedgerReason.RESTOCK
    REASON_RESERVE = LedgerReason.RESERVE
    REASON_RELEASE = LedgerReason.RELEASE
    REASON_COMMIT = LedgerReason.COMMIT
    REASON_CHOICES = LedgerReason.choices

    product = models.ForeignKey("catalog.Product", related_name="ledger_entries", on_delete=models.CASCADE)
    delta = models.IntegerField()  # signed: +restock/+release, -reserve, 0 commit
    quantity = models.PositiveIntegerField()
    reason = models.CharField(max_length=16, choices=REASON_CHOICES)
    balance = models.IntegerField()  # available after this entry
    reference = models.CharField(max_length=120, blank=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ["id"]
        indexes = [
            models.Index(fields=["product", "id"], name="ledger_product_id_idx"),
            models.Index(fields=["reference"], name="ledger_reference_idx"),
        ]
        constraints = [
            models.CheckConstraint(name="ledger_balance_non_negative", condition=models.Q(balance__gte=0)),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.reason} {self.delta:+d} for {self.product_id} -> {self.balance}"

    def save(self, *args, **kwargs):
        if self.pk is not None:
            raise ValueError("Ledger entries are append-only")
        super().save(*args, **kwargs)
