"""Selectors for the inventory domain."""

from datetime import datetime
from typing import Optional

from django.db.models import IntegerField, OuterRef, QuerySet, Subquery, Sum, Value
from django.db.models.functions import Coalesce

from .models import StockItem, StockLedgerEntry


def available_quantity(product_id: int) -> int:
    try:
        return int(StockItem.objects.only("available").get(product_id=product_id).available)
    except StockItem.DoesNotExist:
        return 0


def ledger_balance(product_id: int, as_of: Optional[datetime] = None) -> int:
    """Replay the ledger for a product, optionally up to ``as_of`` inclusive."""

    qs = StockLedgerEntry.objects.filter(product_id=product_id)
    if as_of is not None:
        qs = qs.filter(created_at__lte=as_of)
    return int(qs.aggregate(total=Sum("delta"))["total"] or 0)


def list_ledger(
    *,
    product_id: Optional[int] = None,
    reason: Optional[str] = None,
    reference: Optional[str] = None,
    created_after: Optional[datetime] = None,
) -> QuerySet[StockLedgerEntry]:
    qs = StockLedgerEntry.objects.all().order_by("-id")
    if product_id:
        qs = qs.filter(product_id=product_id)
    if reason:
        qs = qs.filter(reason=reason)
    if reference:
        qs = qs.filter(reference=reference)
    if created_after:
        qs = qs.filter(created_at__gte=created_after)
    return qs


def find_ledger_drift() -> list[dict]:
    """Products whose cached ``available`` disagrees with the ledger sum."""

    ledger_sum = (
        StockLedgerEntry.objects.filter(product_id=OuterRef("product_id"))
        .values("product_id")
        .annotate(total=Sum("delta"))
        .values("total")
    )
    qs = StockItem.objects.annotate(
        ledger_total=Coalesce(Subquery(ledger_sum, output_field=IntegerField()), Value(0))
    ).order_by("product_id")
    return [
        {"product_id": s.product_id, "available": int(s.available), "ledger_total": int(s.ledger_total)}
        for s in qs
        if int(s.available) != int(s.ledger_total)
    ]


def low_stock(threshold: int) -> QuerySet[StockItem]:
    return StockItem.objects.filter(available__lt=threshold).select_related("product").order_by("available")
