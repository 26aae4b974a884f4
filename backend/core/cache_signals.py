"""
Cache invalidation signals
Automatically invalidate cache when data changes
"""
from django.db import transaction
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver
import logging
import threading
from contextlib import contextmanager

from .cache_utils import invalidate_products_cache, invalidate_dashboard_cache

logger = logging.getLogger(__name__)

# Thread-local storage to track signal suspension
_thread_locals = threading.local()

PRODUCT_MODELS = {'Product', 'BaseUnit', 'InnerPack', 'InnerPackContent', 'OuterPack', 'OuterPackContent', 'Inventory'}
DASHBOARD_MODELS = {'Order', 'OrderItem', 'Company', 'CompanyApplication', 'Inventory'}


@contextmanager
def suspend_cache_signals():
    """
    Context manager to temporarily suspend cache invalidation signals.
    Useful for bulk operations to prevent excessive cache clearing.
    Remember to manually invalidate cache after the block!
    """
    try:
        _thread_locals.suspended = True
        yield
    finally:
        _thread_locals.suspended = False


def is_suspended():
    return getattr(_thread_locals, 'suspended', False)


def _invalidate(invalidator):
    # Again after commit, so a read inside the transaction cannot pin stale data
    invalidator()
    transaction.on_commit(invalidator)


@receiver([post_save, post_delete])
def invalidate_products_cache_on_change(sender, instance, **kwargs):
    """Invalidate products cache when products, their packaging or inventory change"""
    if is_suspended() or sender.__name__ not in PRODUCT_MODELS:
        return
    if sender._meta.app_label not in ('catalog', 'inventory'):
        return
    _invalidate(invalidate_products_cache)


@receiver([post_save, post_delete])
def invalidate_dashboard_cache_on_change(sender, instance, **kwargs):
    """Invalidate dashboard cache when orders, companies or stock change"""
    if is_suspended() or sender.__name__ not in DASHBOARD_MODELS:
        return
    if sender._meta.app_label not in ('orders', 'companies', 'inventory'):
        return
    _invalidate(invalidate_dashboard_cache)
