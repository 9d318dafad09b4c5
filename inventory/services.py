"""Inventory services: the only code allowed to change stock quantities.

Every mutation locks the product's ``StockItem`` row (``select_for_update``)
inside a transaction and appends exactly one ledger entry, so concurrent
callers are serialized per product and the ledger sum stays equal to
``StockItem.available``.
"""

import logging

from common.exceptions import InsufficientStock, UnknownProduct
from django.db import IntegrityError, transaction

from .models import StockItem, StockLedgerEntry

logger = logging.getLogger("pantry.inventory")


def _require_positive(quantity: int) -> int:
    quantity = int(quantity)
    if quantity <= 0:
        raise ValueError("Quantity must be positive")
    return quantity


def _lock(product_id: int) -> StockItem:
    try:
        return StockItem.objects.select_for_update().select_related("product").get(product_id=product_id)
    except StockItem.DoesNotExist:
        raise UnknownProduct(product_id)


def _append(item: StockItem, *, reason: str, delta: int, quantity: int, reference: str) -> StockLedgerEntry:
    entry = StockLedgerEntry.objects.create(
        product_id=item.product_id,
        delta=delta,
        quantity=quantity,
        reason=reason,
        balance=item.available,
        reference=reference[:120],
    )
    logger.info(
        f"stock_{reason}",
        extra={
            "event": f"stock_{reason}",
            "product_id": item.product_id,
            "delta": delta,
            "quantity": quantity,
            "available": item.available,
            "held": item.held,
            "reference": reference,
        },
    )
    return entry


@transaction.atomic
def register_stock(*, product_id: int, initial: int = 0) -> StockItem:
    """Create the stock counter for a product.

    A positive ``initial`` is recorded as a restock so the ledger explains
    every unit of stock.
    """

    if int(initial) < 0:
        raise ValueError("Initial stock cannot be negative")
    try:
        with transaction.atomic():
            item = StockItem.objects.create(product_id=product_id)
    except IntegrityError:
        item = StockItem.objects.get(product_id=product_id)
    if initial:
        restock(product_id=product_id, quantity=initial, reference="opening stock")
        item.refresh_from_db()
    return item


@transaction.atomic
def restock(*, product_id: int, quantity: int, reference: str = "") -> StockLedgerEntry:
    quantity = _require_positive(quantity)
    item = _lock(product_id)
    item.available = int(item.available) + quantity
    item.save(update_fields=["available", "updated_at"])
    return _append(item, reason=StockLedgerEntry.REASON_RESTOCK, delta=quantity, quantity=quantity, reference=reference)


@transaction.atomic
def try_hold(*, product_id: int, quantity: int, reference: str = "") -> StockLedgerEntry:
    """Take ``quantity`` out of available stock and mark it held.

    Fails with ``InsufficientStock`` and changes nothing when not enough is
    available. Inactive products cannot be held.
    """

    quantity = _require_positive(quantity)
    item = _lock(product_id)
    if not item.product.is_active:
        raise UnknownProduct(product_id, detail="Product is not available for sale.")
    if int(item.available) < quantity:
        raise InsufficientStock(product_id, requested=quantity, available=int(item.available))
    item.available = int(item.available) - quantity
    item.held = int(item.held) + quantity
    item.save(update_fields=["available", "held", "updated_at"])
    return _append(item, reason=StockLedgerEntry.REASON_RESERVE, delta=-quantity, quantity=quantity, reference=reference)


@transaction.atomic
def release(*, product_id: int, quantity: int, reference: str = "") -> StockLedgerEntry:
    """Return held stock to availability. Never fails on stock levels."""

    quantity = _require_positive(quantity)
    item = _lock(product_id)
    item.available = int(item.available) + quantity
    item.held = max(0, int(item.held) - quantity)
    item.save(update_fields=["available", "held", "updated_at"])
    return _append(item, reason=StockLedgerEntry.REASON_RELEASE, delta=quantity, quantity=quantity, reference=reference)


@transaction.atomic
def finalize(*, product_id: int, quantity: int, reference: str = "") -> StockLedgerEntry:
    """Mark held stock as sold.

    Availability was already reduced by the hold, so the ledger entry has a
    zero delta; the quantity moves from ``held`` to ``sold``.
    """

    quantity = _require_positive(quantity)
    item = _lock(product_id)
    if int(item.held) < quantity:
        raise InsufficientStock(
            product_id,
            requested=quantity,
            available=int(item.held),
            detail="Cannot commit more than is held.",
        )
    item.held = int(item.held) - quantity
    item.sold = int(item.sold) + quantity
    item.save(update_fields=["held", "sold", "updated_at"])
    return _append(item, reason=StockLedgerEntry.REASON_COMMIT, delta=0, quantity=quantity, reference=reference)
