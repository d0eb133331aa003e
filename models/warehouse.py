"""
Warehouse and Location models: where lots live.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class Warehouse(models.Model):
    """
    A site that holds stock.

    Warehouses are stable entities, created during system setup.

    Examples:
        Warehouse.objects.create(code='ist-main', name='Istanbul Main')
    """

    code = models.SlugField(
        unique=True,
        max_length=50,
        verbose_name=_('Code'),
        help_text=_('Unique identifier (e.g. ist-main)'),
    )
    name = models.CharField(
        max_length=255,
        verbose_name=_('Name'),
    )
    is_active = models.BooleanField(
        default=True,
        verbose_name=_('Active'),
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _('Warehouse')
        verbose_name_plural = _('Warehouses')
        ordering = ['code']

    def __str__(self) -> str:
        return self.name


class Location(models.Model):
    """
    Storage location inside a warehouse (bin, shelf, pallet slot).

    Flat structure: zone/aisle hierarchy lives in the code itself,
    e.g. "A-01-03".
    """

    warehouse = models.ForeignKey(
        Warehouse,
        on_delete=models.CASCADE,
        related_name='locations',
        verbose_name=_('Warehouse'),
    )
    code = models.CharField(
        max_length=50,
        verbose_name=_('Code'),
    )
    name = models.CharField(
        max_length=100,
        blank=True,
        default='',
        verbose_name=_('Name'),
    )
    zone = models.CharField(
        max_length=50,
        blank=True,
        default='',
        verbose_name=_('Zone'),
        help_text=_('receiving, storage, picking, packing, shipping'),
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _('Location')
        verbose_name_plural = _('Locations')
        ordering = ['warehouse', 'code']
        constraints = [
            models.UniqueConstraint(
                fields=['warehouse', 'code'],
                name='unique_location_code_per_warehouse',
            ),
        ]

    def __str__(self) -> str:
        return f"{self.warehouse.code}/{self.code}"
