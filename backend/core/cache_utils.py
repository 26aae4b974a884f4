"""
Caching utilities for expensive list and report queries.

Keys carry a per-namespace generation number. Invalidation bumps the
generation so every older key is orphaned at once and left to expire, which
works the same on Redis and on the local memory backend.
"""
from django.core.cache import cache
import hashlib
import logging

logger = logging.getLogger(__name__)

# Cache TTLs (in seconds)
PRODUCTS_LIST_CACHE_TTL = 120  # 2 minutes
DASHBOARD_CACHE_TTL = 300  # 5 minutes

PRODUCTS_NAMESPACE = 'products_list'
DASHBOARD_NAMESPACE = 'dashboard'


def _generation_key(namespace):
    return f"{namespace}:generation"


def get_cache_generation(namespace):
    return cache.get_or_set(_generation_key(namespace), 1, None)


def bump_cache_generation(namespace):
    key = _generation_key(namespace)
    try:
        return cache.incr(key)
    except ValueError:
        # Key missing or evicted
        cache.set(key, 2, None)
        return 2


def make_cache_key(prefix, *args, **kwargs):
    """Generate a unique cache key from arguments"""
    # Convert args and kwargs to a stable string representation
    key_data = f"{prefix}:{args}:{sorted(kwargs.items())}"
    # Hash it to keep key length reasonable
    key_hash = hashlib.md5(key_data.encode()).hexdigest()
    return f"{prefix}:{get_cache_generation(prefix)}:{key_hash}"


def get_cached_products_list(scope, filters_dict):
    """
    Get cached products list for a viewer scope (admin/customer) and filters
    Returns tuple: (cached_data, cache_key)
    """
    cache_key = make_cache_key(PRODUCTS_NAMESPACE, scope, **filters_dict)
    return cache.get(cache_key), cache_key


def cache_products_list(cache_key, data, ttl=PRODUCTS_LIST_CACHE_TTL):
    """Cache products list data"""
    cache.set(cache_key, data, ttl)
    logger.debug(f"Cached products list: {cache_key}")


def get_cached_dashboard():
    cache_key = make_cache_key(DASHBOARD_NAMESPACE)
    return cache.get(cache_key), cache_key


def cache_dashboard(cache_key, data, ttl=DASHBOARD_CACHE_TTL):
    cache.set(cache_key, data, ttl)
    logger.debug(f"Cached dashboard: {cache_key}")


def invalidate_products_cache():
    """Invalidate all products-related cache"""
    generation = bump_cache_generation(PRODUCTS_NAMESPACE)
    logger.info(f"Invalidated products cache (generation {generation})")


def invalidate_dashboard_cache():
    """Invalidate dashboard cache"""
    generation = bump_cache_generation(DASHBOARD_NAMESPACE)
    logger.info(f"Invalidated dashboard cache (generation {generation})")
