"""
Order placement and status changes.

Stock is deducted at the ordered packaging level when the order is placed and
put back when it is cancelled. Every stock movement runs in the same
transaction as the order write.
"""
import logging
from decimal import Decimal, ROUND_HALF_UP

from django.conf import settings
from django.db import transaction

from backend.catalog.models import Product
from backend.core.permissions import is_approved_customer
from backend.inventory.services import change_stock
from .exceptions import InvalidOrderItem, InvalidOrderTransition, OrderError, OrderNotAllowed
from .models import Order, OrderItem

logger = logging.getLogger(__name__)

CENT = Decimal('0.01')


def _resolve_shipping_address(company, address_id=None):
    addresses = company.shipping_addresses or []
    if address_id:
        for address in addresses:
            if address.get('id') == address_id:
                return address
        raise InvalidOrderItem(f"Unknown shipping address '{address_id}'.")
    return company.default_shipping_address() or {}


def place_order(user, items, shipping_address_id=None, notes=''):
    """
    Place an order for the user's company.

    ``items`` is a list of ``{'product', 'level', 'quantity'}`` mappings. Raises
    OrderNotAllowed for accounts that may not order, InvalidOrderItem for lines
    that cannot be sold, and InsufficientStock when a tier runs short. Nothing
    is written unless every line succeeds.
    """
    if not is_approved_customer(user):
        raise OrderNotAllowed('Only approved customers with an active company can place orders.')
    if not items:
        raise InvalidOrderItem('An order needs at least one item.')

    company = user.company
    shipping_address = _resolve_shipping_address(company, shipping_address_id)

    with transaction.atomic():
        order = Order.objects.create(
            company=company,
            placed_by=user,
            shipping_address=shipping_address,
            discount_percentage=company.discount_percentage,
            currency=settings.DEFAULT_CURRENCY,
            notes=notes,
        )

        subtotal = Decimal('0.00')
        # Lock inventory rows in a stable order
        for item in sorted(items, key=lambda line: (line['product'].pk, line['level'])):
            product = Product.objects.select_related('fpakk', 'mellompakk', 'toppakk').get(pk=item['product'].pk)
            level = item['level']
            quantity = item['quantity']

            if product.status != Product.STATUS_ACTIVE:
                raise InvalidOrderItem(f"{product.name} is not available for ordering.")
            if level not in product.available_levels():
                raise InvalidOrderItem(f"{product.name} is not sold as {level}.")
            unit_price = product.price_for_level(level)
            if unit_price is None:
                raise InvalidOrderItem(f"{product.name} has no price for {level}.")

            change_stock(product, level, -quantity)

            line_total = (unit_price * quantity).quantize(CENT, rounding=ROUND_HALF_UP)
            OrderItem.objects.create(
                order=order,
                product=product,
                product_name=product.name,
                level=level,
                quantity=quantity,
                unit_price=unit_price,
                units=quantity * product.units_per_level(level),
                line_total=line_total,
            )
            subtotal += line_total

        order.subtotal = subtotal
        order.discount_amount = (subtotal * company.discount_percentage / 100).quantize(CENT, rounding=ROUND_HALF_UP)
        order.total = subtotal - order.discount_amount
        order.save(update_fields=['subtotal', 'discount_amount', 'total', 'updated_at'])

    logger.info(f"Order {order.order_number} placed by {user.username} for {company.name}: {order.total} {order.currency}")
    return order


def change_order_status(order, new_status, user=None):
    """
    Move an order along pending -> processing -> shipped -> delivered.

    Pending and processing orders can be cancelled, which restocks every line.
    Raises InvalidOrderTransition for any other move.
    """
    if new_status not in dict(Order.STATUS_CHOICES):
        raise OrderError(f"Unknown order status '{new_status}'.")

    with transaction.atomic():
        locked = Order.objects.select_for_update().get(pk=order.pk)
        if not locked.can_transition_to(new_status):
            raise InvalidOrderTransition(locked, new_status)

        if new_status == Order.STATUS_CANCELLED:
            for item in locked.items.select_related('product').order_by('product_id', 'level'):
                change_stock(item.product, item.level, item.quantity)

        old_status = locked.status
        locked.status = new_status
        locked.save(update_fields=['status', 'updated_at'])

    order.refresh_from_db()
    logger.info(f"Order {order.order_number} moved from {old_status} to {new_status} by {user}")
    return order


def cancel_order(order, user):
    """Customer cancellation; only pending orders of the user's own company"""
    if order.company_id != user.company_id:
        raise OrderNotAllowed('You can only cancel your own company\'s orders.')
    if order.status != Order.STATUS_PENDING:
        raise InvalidOrderTransition(order, Order.STATUS_CANCELLED)
    return change_order_status(order, Order.STATUS_CANCELLED, user)
