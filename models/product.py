"""
Product model: the warehouse view of a sellable item.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class Product(models.Model):
    """
    Product attributes that matter to lot handling.

    is_perishable / has_expiry_date / category drive the default
    rotation rule (see lotman.rotation.determine_rotation_rule).
    shelf_life_days lets receive() derive an expiry date.
    """

    sku = models.CharField(
        max_length=100,
        unique=True,
        verbose_name=_('SKU'),
    )
    name = models.CharField(
        max_length=255,
        verbose_name=_('Name'),
    )
    category = models.CharField(
        max_length=100,
        blank=True,
        default='',
        db_index=True,
        verbose_name=_('Category'),
    )
    is_perishable = models.BooleanField(
        default=False,
        verbose_name=_('Perishable'),
    )
    has_expiry_date = models.BooleanField(
        default=False,
        verbose_name=_('Tracks expiry date'),
    )
    shelf_life_days = models.PositiveIntegerField(
        null=True,
        blank=True,
        verbose_name=_('Shelf life (days)'),
        help_text=_('Empty = no expiry derived on receipt'),
    )
    is_active = models.BooleanField(
        default=True,
        verbose_name=_('Active'),
    )
    metadata = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _('Product')
        verbose_name_plural = _('Products')
        ordering = ['sku']

    def __str__(self) -> str:
        return f"{self.sku} {self.name}"
