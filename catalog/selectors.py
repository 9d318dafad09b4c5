"""Selectors for the catalog domain.

Read-only query helpers shared by the storefront and admin views. Selectors
return querysets or lightweight data structures and have no side effects.
"""

from decimal import Decimal
from typing import Optional

from django.conf import settings
from django.db.models import Count, DecimalField, ExpressionWrapper, F, Q, QuerySet, Sum, Value
from django.db.models.functions import Coalesce

from .models import Product


def list_products(
    *,
    search: Optional[str] = None,
    category: Optional[str] = None,
    status: Optional[str] = Product.STATUS_ACTIVE,
) -> QuerySet[Product]:
    """Return products with their stock counter joined in.

    ``search`` matches name or description case-insensitively; ``category``
    is an exact label. Pass ``status=None`` to include inactive products.
    """

    qs = Product.objects.select_related("stock")
    if status:
        qs = qs.filter(status=status)
    if category:
        qs = qs.filter(category=category)
    if search:
        qs = qs.filter(Q(name__icontains=search) | Q(description__icontains=search))
    return qs.order_by("name", "id")


def list_categories(*, status: Optional[str] = Product.STATUS_ACTIVE) -> list[str]:
    qs = Product.objects.all()
    if status:
        qs = qs.filter(status=status)
    return list(qs.order_by("category").values_list("category", flat=True).distinct())


def dashboard_stats(*, low_stock_threshold: Optional[int] = None) -> dict:
    """Figures shown on the admin inventory screen.

    ``total_value`` is the sum of price times available quantity.
    """

    threshold = settings.LOW_STOCK_THRESHOLD if low_stock_threshold is None else low_stock_threshold
    value_expr = ExpressionWrapper(
        F("price") * Coalesce(F("stock__available"), Value(0)),
        output_field=DecimalField(max_digits=18, decimal_places=2),
    )
    agg = Product.objects.aggregate(
        total_products=Count("id"),
        active_products=Count("id", filter=Q(status=Product.STATUS_ACTIVE)),
        low_stock_items=Count("id", filter=Q(stock__available__lt=threshold)),
        total_value=Sum(value_expr),
    )
    total_value = agg["total_value"] or Decimal("0.00")
    return {
        "total_products": agg["total_products"],
        "active_products": agg["active_products"],
        "low_stock_items": agg["low_stock_items"],
        "low_stock_threshold": threshold,
        "total_value": Decimal(total_value).quantize(Decimal("0.01")),
    }
