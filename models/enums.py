"""
Enums for Lotman models.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class LotStatus(models.TextChoices):
    """
    Lot lifecycle status.

    Only AVAILABLE lots take part in listings and allocation.
    EXPIRED is one-way: set by the expiry sweep, never reverted.
    """
    AVAILABLE = 'available', _('Available')
    RESERVED = 'reserved', _('Reserved')
    EXPIRED = 'expired', _('Expired')
    QUARANTINE = 'quarantine', _('Quarantine')
    CONSUMED = 'consumed', _('Consumed')


class MovementType(models.TextChoices):
    """Kind of quantity change recorded by a Movement."""
    RECEIPT = 'receipt', _('Receipt')
    RESERVATION = 'reservation', _('Reservation')
    RELEASE = 'release', _('Release')
    CONSUMPTION = 'consumption', _('Consumption')


class RotationStrategy(models.TextChoices):
    """
    Stock rotation policy.

    FIFO: oldest received first
    FEFO: earliest expiry first, lots without expiry last
    LIFO: newest received first
    """
    FIFO = 'FIFO', _('First In, First Out')
    FEFO = 'FEFO', _('First Expiry, First Out')
    LIFO = 'LIFO', _('Last In, First Out')
