"""
Lotman Admin.

Provides views for operations and debugging:
- Warehouse / Location / Product: list + edit
- Lot: read-only (quantities change only through the lot service),
  with a "sweep expired lots" action
- Movement: read-only audit trail
"""

import logging

from django.contrib import admin, messages
from django.utils.translation import gettext_lazy as _

from lotman.models import Location, Lot, Movement, Product, Warehouse
from lotman.service import Lots

logger = logging.getLogger(__name__)


# =========================================================================
# WAREHOUSE / LOCATION ADMIN
# =========================================================================

class LocationInline(admin.TabularInline):
    model = Location
    extra = 0
    fields = ['code', 'name', 'zone']


@admin.register(Warehouse)
class WarehouseAdmin(admin.ModelAdmin):
    """Warehouse admin: editable."""

    list_display = ['code', 'name', 'is_active']
    list_filter = ['is_active']
    search_fields = ['code', 'name']
    readonly_fields = ['created_at', 'updated_at']
    inlines = [LocationInline]


@admin.register(Location)
class LocationAdmin(admin.ModelAdmin):
    list_display = ['code', 'warehouse', 'zone', 'name']
    list_filter = ['warehouse', 'zone']
    search_fields = ['code', 'name']


# =========================================================================
# PRODUCT ADMIN
# =========================================================================

@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ['sku', 'name', 'category', 'is_perishable', 'has_expiry_date',
                    'shelf_life_days', 'is_active']
    list_filter = ['category', 'is_perishable', 'has_expiry_date', 'is_active']
    search_fields = ['sku', 'name']
    readonly_fields = ['created_at', 'updated_at']


# =========================================================================
# LOT ADMIN (read-only)
# =========================================================================

@admin.register(Lot)
class LotAdmin(admin.ModelAdmin):
    """Lot admin: read-only. Quantities only change via the lot service."""

    list_display = ['lot_number', 'product', 'warehouse', 'location', 'status',
                    'quantity_on_hand', 'quantity_available', 'quantity_reserved',
                    'received_date', 'expiry_date']
    list_filter = ['status', 'warehouse', 'expiry_date']
    search_fields = ['lot_number', 'product__sku', 'product__name']
    readonly_fields = ['lot_number', 'product', 'warehouse', 'location',
                       'quantity_on_hand', 'quantity_available', 'quantity_reserved',
                       'manufacture_date', 'expiry_date', 'received_date', 'status',
                       'metadata', 'created_at', 'updated_at']
    date_hierarchy = 'received_date'
    ordering = ['warehouse', 'product', 'received_date']
    actions = ['sweep_expired']

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    @admin.action(description=_('Sweep expired lots in the selected lots\' warehouses'))
    def sweep_expired(self, request, queryset):
        total = 0
        for warehouse in Warehouse.objects.filter(lots__in=queryset).distinct():
            total += len(Lots.sweep_expired_lots(warehouse))
        logger.info("lot.admin.sweep", extra={"expired": total})
        self.message_user(request, _('%d lot(s) expired.') % total, messages.SUCCESS)


# =========================================================================
# MOVEMENT ADMIN (read-only audit trail)
# =========================================================================

@admin.register(Movement)
class MovementAdmin(admin.ModelAdmin):
    """Movement admin: read-only. Immutable audit trail."""

    list_display = ['timestamp', 'movement_number', 'movement_type', 'lot_number',
                    'product', 'warehouse', 'quantity', 'reason', 'performed_by']
    list_filter = ['movement_type', 'warehouse', 'timestamp']
    search_fields = ['movement_number', 'lot_number', 'reference', 'performed_by']
    readonly_fields = ['movement_number', 'lot', 'warehouse', 'product', 'movement_type',
                       'reason', 'from_location', 'to_location', 'quantity', 'lot_number',
                       'reference', 'performed_by', 'timestamp', 'metadata']
    date_hierarchy = 'timestamp'

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
