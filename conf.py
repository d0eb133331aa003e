"""
Lotman configuration.

Usage in settings.py:
    LOTMAN = {
        "CACHE_ALIAS": "default",
        "CACHE_TTL_SECONDS": 300,
        "ALLOCATION_RETRIES": 3,
        "EXPIRY_SWEEP_BATCH_SIZE": 200,
        "STRICT_RELEASE": False,
        "LIFO_CATEGORIES": ("electronics", "fashion"),
    }
"""

from dataclasses import dataclass
from typing import Any

from django.conf import settings


@dataclass
class LotmanSettings:
    """Lotman configuration settings."""

    # Django cache alias used for lot listings
    CACHE_ALIAS: str = "default"

    # Lot listing TTL in seconds (0 = don't cache)
    CACHE_TTL_SECONDS: int = 300

    # Conditional-update attempts per lot before giving up
    ALLOCATION_RETRIES: int = 3

    # Rows per transaction in sweep_expired_lots
    EXPIRY_SWEEP_BATCH_SIZE: int = 200

    # Reject release() of more than is reserved instead of clamping
    STRICT_RELEASE: bool = False

    # Product categories that default to LIFO rotation
    LIFO_CATEGORIES: tuple = ("electronics", "fashion")


def get_lotman_settings() -> LotmanSettings:
    """Load settings from Django settings."""
    user_settings: dict[str, Any] = getattr(settings, "LOTMAN", {})
    return LotmanSettings(**{
        k: v for k, v in user_settings.items()
        if k in LotmanSettings.__dataclass_fields__
    })


class _LazySettings:
    """Lazy proxy that re-reads settings on every attribute access."""

    def __getattr__(self, name):
        return getattr(get_lotman_settings(), name)


lotman_settings = _LazySettings()
