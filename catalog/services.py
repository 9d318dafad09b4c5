"""Catalog mutations used by the admin inventory screen.

Stock is never written here directly; product creation registers a stock
counter through the inventory services.
"""

import logging
from decimal import Decimal

from common.exceptions import InvalidState, NotFound
from django.db import transaction
from django.utils import timezone
from inventory.services import register_stock

from .models import Product

logger = logging.getLogger("pantry.inventory")


@transaction.atomic
def create_product(
    *,
    name: str,
    category: str,
    price: Decimal,
    unit: str = "",
    description: str = "",
    image_url: str = "",
    status: str = Product.STATUS_ACTIVE,
    initial_stock: int = 0,
) -> Product:
    """Create a product together with its stock counter.

    A positive ``initial_stock`` is recorded as the product's first restock.
    """

    product = Product.objects.create(
        name=name,
        category=category,
        price=price,
        unit=unit,
        description=description,
        image_url=image_url,
        status=status,
    )
    register_stock(product_id=product.id, initial=initial_stock)
    logger.info(
        "product_created",
        extra={"event": "product_created", "product_id": product.id, "initial_stock": initial_stock},
    )
    return product


def set_product_status(*, product_id: int, status: str) -> Product:
    updated = Product.objects.filter(pk=product_id).update(status=status, updated_at=timezone.now())
    if not updated:
        raise NotFound(f"Product {product_id} not found.")
    product = Product.objects.get(pk=product_id)
    logger.info(
        "product_status_changed",
        extra={"event": "product_status_changed", "product_id": product_id, "status": status},
    )
    return product


@transaction.atomic
def remove_product(*, product_id: int) -> None:
    """Delete a product that was never reserved or sold.

    Products referenced by a reservation or an order must be deactivated
    instead; their history stays queryable.
    """

    from orders.models import OrderLine
    from reservations.models import ReservationLine

    try:
        product = Product.objects.select_for_update().get(pk=product_id)
    except Product.DoesNotExist:
        raise NotFound(f"Product {product_id} not found.")
    if (
        ReservationLine.objects.filter(product_id=product_id).exists()
        or OrderLine.objects.filter(product_id=product_id).exists()
    ):
        raise InvalidState("Product has reservations or orders; deactivate it instead.", product_id=product_id)
    product.delete()
    logger.info("product_removed", extra={"event": "product_removed", "product_id": product_id})
