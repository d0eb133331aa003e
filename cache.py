"""
Lot listing cache: short-TTL memo of list_available_lots().

The cache is advisory: allocation always reads the database, and every
write invalidates the listings of the (product, warehouse) it touched.
All cache failures are logged and swallowed.
"""

import logging

from django.core.cache import caches
from django.db import transaction

from lotman.conf import lotman_settings
from lotman.models.enums import RotationStrategy

logger = logging.getLogger('lotman')


def _get_cache():
    return caches[lotman_settings.CACHE_ALIAS]


def listing_key(product_id, warehouse_id, strategy) -> str:
    """Cache key for one (product, warehouse, strategy) listing."""
    return f"lotman:lots:{product_id}:{warehouse_id}:{RotationStrategy(strategy).value}"


def get_listing(product_id, warehouse_id, strategy):
    """Cached listing or None on miss/failure."""
    key = listing_key(product_id, warehouse_id, strategy)
    try:
        return _get_cache().get(key)
    except Exception:
        logger.warning("lot.cache.get_failed", extra={"key": key}, exc_info=True)
        return None


def set_listing(product_id, warehouse_id, strategy, lots) -> None:
    """Store a listing for CACHE_TTL_SECONDS (0 disables caching)."""
    ttl = lotman_settings.CACHE_TTL_SECONDS
    if not ttl:
        return
    key = listing_key(product_id, warehouse_id, strategy)
    try:
        _get_cache().set(key, list(lots), ttl)
    except Exception:
        logger.warning("lot.cache.set_failed", extra={"key": key}, exc_info=True)


def invalidate_after_write(product_id, warehouse_id) -> None:
    """
    Invalidate now and again once the transaction commits.

    The second pass drops listings a concurrent reader may have rebuilt
    from pre-commit rows in between.
    """
    invalidate_listings(product_id, warehouse_id)
    transaction.on_commit(lambda: invalidate_listings(product_id, warehouse_id))


def invalidate_listings(product_id, warehouse_id) -> None:
    """Drop the listings of every strategy for a product in a warehouse."""
    keys = [listing_key(product_id, warehouse_id, s) for s in RotationStrategy]
    try:
        _get_cache().delete_many(keys)
    except Exception:
        logger.warning(
            "lot.cache.invalidate_failed",
            extra={"product_id": product_id, "warehouse_id": warehouse_id},
            exc_info=True,
        )
