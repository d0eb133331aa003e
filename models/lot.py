"""
Lot model: quantity state of one received batch.
"""

from django.db import models
from django.db.models import F, Q
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from lotman.models.enums import LotStatus


class LotQuerySet(models.QuerySet):
    """Custom QuerySet for Lot with convenience filters."""

    def for_product(self, product, warehouse=None):
        """Filter lots of a product, optionally in one warehouse."""
        qs = self.filter(product=product)
        if warehouse is not None:
            qs = qs.filter(warehouse=warehouse)
        return qs

    def allocatable(self):
        """Lots that can take new reservations."""
        return self.filter(status=LotStatus.AVAILABLE, quantity_available__gt=0)

    def past_expiry(self, today=None):
        """
        Available lots whose expiry date has passed but still hold stock.

        This is the sweep's selection; it does not change anything.
        """
        today = today or timezone.localdate()
        return self.filter(
            status=LotStatus.AVAILABLE,
            expiry_date__isnull=False,
            expiry_date__lt=today,
            quantity_on_hand__gt=0,
        )


class Lot(models.Model):
    """
    A quantity of one product in one warehouse sharing a lot number
    and a manufacture/expiry date.

    Invariant (enforced by a check constraint):
        quantity_available + quantity_reserved == quantity_on_hand

    Quantities only change through the lot services, using conditional
    UPDATEs with F() expressions. Never assign them directly.
    """

    lot_number = models.CharField(
        max_length=100,
        db_index=True,
        verbose_name=_('Lot number'),
        help_text=_('Unique per product and warehouse, not globally'),
    )
    product = models.ForeignKey(
        'lotman.Product',
        on_delete=models.PROTECT,
        related_name='lots',
        verbose_name=_('Product'),
    )
    warehouse = models.ForeignKey(
        'lotman.Warehouse',
        on_delete=models.PROTECT,
        related_name='lots',
        verbose_name=_('Warehouse'),
    )
    location = models.ForeignKey(
        'lotman.Location',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='lots',
        verbose_name=_('Location'),
    )

    quantity_on_hand = models.PositiveIntegerField(default=0, verbose_name=_('On hand'))
    quantity_available = models.PositiveIntegerField(default=0, verbose_name=_('Available'))
    quantity_reserved = models.PositiveIntegerField(default=0, verbose_name=_('Reserved'))

    manufacture_date = models.DateField(
        null=True,
        blank=True,
        verbose_name=_('Manufacture date'),
    )
    expiry_date = models.DateField(
        null=True,
        blank=True,
        verbose_name=_('Expiry date'),
        help_text=_('Last day the lot may be used'),
    )
    received_date = models.DateField(
        default=timezone.localdate,
        verbose_name=_('Received date'),
    )

    status = models.CharField(
        max_length=20,
        choices=LotStatus.choices,
        default=LotStatus.AVAILABLE,
        db_index=True,
        verbose_name=_('Status'),
    )

    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = LotQuerySet.as_manager()

    class Meta:
        verbose_name = _('Lot')
        verbose_name_plural = _('Lots')
        constraints = [
            models.CheckConstraint(
                condition=Q(quantity_on_hand=F('quantity_available') + F('quantity_reserved')),
                name='lot_quantities_balance',
            ),
        ]
        indexes = [
            models.Index(fields=['product', 'warehouse', 'status'], name='lotman_lot_prod_wh_status_idx'),
            models.Index(fields=['warehouse', 'lot_number'], name='lotman_lot_wh_number_idx'),
            models.Index(fields=['expiry_date'], name='lotman_lot_expiry_idx'),
        ]

    @property
    def is_expired(self) -> bool:
        """Is this lot past its expiry date?"""
        if self.expiry_date is None:
            return False
        return timezone.localdate() > self.expiry_date

    @property
    def is_allocatable(self) -> bool:
        """Can this lot take new reservations?"""
        return self.status == LotStatus.AVAILABLE and self.quantity_available > 0

    def __str__(self) -> str:
        expiry = f" (exp:{self.expiry_date})" if self.expiry_date else ""
        return f"Lot {self.lot_number}{expiry}: {self.quantity_available}/{self.quantity_on_hand}"
