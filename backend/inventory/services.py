"""Stock movements. Every change locks the product's inventory row first."""
import logging

from django.db import transaction

from backend.catalog import packaging
from .exceptions import InsufficientStock, InvalidStockLevel
from .models import Inventory, StockReception

logger = logging.getLogger(__name__)


def get_inventory(product, lock=False):
    """Return the product's inventory row, creating an empty one if needed"""
    queryset = Inventory.objects.select_for_update() if lock else Inventory.objects
    inventory, created = queryset.select_related('product').get_or_create(product=product)
    if created:
        logger.info(f"Created empty inventory for product {product.pk}")
    return inventory


def _check_level(product, level):
    if level not in product.available_levels():
        raise InvalidStockLevel(product, level)


def change_stock(product, level, delta):
    """
    Add ``delta`` (may be negative) to the count at ``level``.

    Raises InvalidStockLevel when the product has no such tier and
    InsufficientStock when the count would drop below zero.
    """
    _check_level(product, level)
    with transaction.atomic():
        inventory = get_inventory(product, lock=True)
        current = getattr(inventory, level)
        if current + delta < 0:
            raise InsufficientStock(product, level, -delta, current)
        setattr(inventory, level, current + delta)
        inventory.save()
    logger.debug(f"Stock for product {product.pk} {level}: {current} -> {current + delta}")
    return inventory


def receive_stock(product, level, quantity, received_by=None, note=''):
    """Record a stock reception and increment the tier count"""
    if quantity < 1:
        raise ValueError('Received quantity must be at least 1.')
    with transaction.atomic():
        inventory = change_stock(product, level, quantity)
        reception = StockReception.objects.create(
            product=product,
            level=level,
            quantity=quantity,
            note=note,
            received_by=received_by,
        )
    logger.info(
        f"Received {packaging.format_packaging_level(level, quantity, product.packaging_data())} "
        f"of {product.name}; total now {inventory.total_units} units"
    )
    return reception, inventory
