"""
Movement model: Immutable ledger of lot quantity changes.
"""

import uuid

from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from lotman.models.enums import MovementType


def _movement_number() -> str:
    return f"MOV-{uuid.uuid4().hex[:16].upper()}"


class Movement(models.Model):
    """
    Immutable record of a quantity change against a lot.

    Rules:
    - NEVER update() or delete()
    - Corrections are new Movements of the inverse type
    - Lot quantities are written by the lot services, not here
    """

    movement_number = models.CharField(
        max_length=50,
        unique=True,
        default=_movement_number,
        editable=False,
        verbose_name=_('Movement number'),
    )
    lot = models.ForeignKey(
        'lotman.Lot',
        on_delete=models.PROTECT,
        related_name='movements',
        verbose_name=_('Lot'),
    )
    warehouse = models.ForeignKey(
        'lotman.Warehouse',
        on_delete=models.PROTECT,
        related_name='movements',
        verbose_name=_('Warehouse'),
    )
    product = models.ForeignKey(
        'lotman.Product',
        on_delete=models.PROTECT,
        related_name='movements',
        verbose_name=_('Product'),
    )
    movement_type = models.CharField(
        max_length=20,
        choices=MovementType.choices,
        db_index=True,
        verbose_name=_('Type'),
    )
    reason = models.CharField(
        max_length=100,
        verbose_name=_('Reason'),
        help_text=_('Required. E.g. "picking_allocation", "receiving"'),
    )
    from_location = models.ForeignKey(
        'lotman.Location',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
        verbose_name=_('From location'),
    )
    to_location = models.ForeignKey(
        'lotman.Location',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
        verbose_name=_('To location'),
    )
    quantity = models.PositiveIntegerField(verbose_name=_('Quantity'))
    lot_number = models.CharField(
        max_length=100,
        blank=True,
        default='',
        verbose_name=_('Lot number'),
    )
    reference = models.CharField(
        max_length=100,
        blank=True,
        default='',
        verbose_name=_('Reference'),
        help_text=_('External document, e.g. picking order number'),
    )
    performed_by = models.CharField(
        max_length=100,
        blank=True,
        default='',
        verbose_name=_('Performed by'),
    )
    timestamp = models.DateTimeField(default=timezone.now, db_index=True, verbose_name=_('Timestamp'))
    metadata = models.JSONField(default=dict, blank=True, verbose_name=_('Metadata'))

    class Meta:
        verbose_name = _('Movement')
        verbose_name_plural = _('Movements')
        ordering = ['timestamp', 'pk']
        indexes = [
            models.Index(fields=['lot', 'timestamp'], name='lotman_mov_lot_ts_idx'),
            models.Index(fields=['product', 'warehouse'], name='lotman_mov_prod_wh_idx'),
        ]

    def save(self, *args, **kwargs):
        """Insert only: movements are immutable."""
        if self.pk:
            raise ValueError(
                "Movements are immutable. "
                "To correct one, record a new Movement of the inverse type."
            )

        if not self.reason:
            raise ValueError("Reason is required")

        if self.quantity is None or self.quantity <= 0:
            raise ValueError("Movement quantity must be positive")

        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        """Prevent deletion: movements are immutable."""
        raise ValueError(
            "Movements are immutable. "
            "To reverse one, record a new Movement of the inverse type."
        )

    def __str__(self) -> str:
        return f"{self.movement_type} {self.quantity} | {self.lot_number} | {self.reason}"
