"""
Lot queries: read-only operations.

All methods are classmethod on Lots and use no locking.
"""

from django.db.models import Sum
from django.db.models.functions import Coalesce

from lotman import cache
from lotman.exceptions import LotError, LotNotFound
from lotman.models.lot import Lot
from lotman.models.movement import Movement
from lotman.models.product import Product
from lotman.models.warehouse import Location, Warehouse
from lotman.rotation import coerce_strategy, order_lots, resolve_strategy


def _resolve(model, value, code: str):
    """Accept a model instance or a primary key."""
    if isinstance(value, model):
        return value
    try:
        return model.objects.get(pk=value)
    except (model.DoesNotExist, ValueError, TypeError):
        raise LotNotFound(code, **{f'{model._meta.model_name}_id': value}) from None


def resolve_product(product) -> Product:
    return _resolve(Product, product, 'PRODUCT_NOT_FOUND')


def resolve_warehouse(warehouse) -> Warehouse:
    return _resolve(Warehouse, warehouse, 'WAREHOUSE_NOT_FOUND')


def resolve_location(location) -> Location:
    return _resolve(Location, location, 'LOCATION_NOT_FOUND')


def candidate_lots(product: Product, warehouse: Warehouse, strategy):
    """Allocatable lots straight from the database, in rotation order."""
    return order_lots(
        Lot.objects.for_product(product, warehouse).allocatable().select_related('location'),
        strategy,
    )


class LotQueries:
    """Read-only lot query methods."""

    @classmethod
    def list_available_lots(cls, product, warehouse, strategy=None) -> list[Lot]:
        """
        Allocatable lots of a product in a warehouse, in rotation order.

        Only status=available lots with quantity_available > 0.
        Served from the listing cache when fresh.

        Args:
            product: Product or its pk
            warehouse: Warehouse or its pk
            strategy: FIFO/FEFO/LIFO (None = derive from product)

        Raises:
            LotError('INVALID_STRATEGY'): Unknown strategy name
            LotNotFound('PRODUCT_NOT_FOUND' | 'WAREHOUSE_NOT_FOUND')
        """
        if strategy:
            coerce_strategy(strategy)

        product = resolve_product(product)
        warehouse = resolve_warehouse(warehouse)
        rule = resolve_strategy(strategy, product)

        cached = cache.get_listing(product.pk, warehouse.pk, rule)
        if cached is not None:
            return cached

        lots = list(candidate_lots(product, warehouse, rule))
        cache.set_listing(product.pk, warehouse.pk, rule, lots)
        return lots

    @classmethod
    def available_quantity(cls, product, warehouse) -> int:
        """Total allocatable quantity (never cached)."""
        product = resolve_product(product)
        warehouse = resolve_warehouse(warehouse)
        return Lot.objects.for_product(product, warehouse).allocatable().aggregate(
            t=Coalesce(Sum('quantity_available'), 0)
        )['t']

    @classmethod
    def get_lot(cls, lot) -> Lot:
        """
        Fetch a lot by instance or pk.

        Raises:
            LotNotFound('LOT_NOT_FOUND')
        """
        if isinstance(lot, Lot):
            lot = lot.pk
        return _resolve(Lot, lot, 'LOT_NOT_FOUND')

    @classmethod
    def find_lot_by_number(cls, lot_number: str, warehouse, product=None) -> Lot:
        """
        Exact-match lookup of a lot number in a warehouse.

        Lot numbers are only unique per (product, warehouse). Pass product
        to scope the lookup; an unscoped number shared by several products
        is refused instead of guessing.

        Raises:
            LotNotFound('LOT_NOT_FOUND'): No lot with that number
            LotError('AMBIGUOUS_LOT_NUMBER'): Unscoped and several products match
        """
        warehouse = resolve_warehouse(warehouse)
        qs = Lot.objects.filter(lot_number=lot_number, warehouse=warehouse)

        if product is not None:
            qs = qs.filter(product=resolve_product(product))
        else:
            product_ids = set(qs.values_list('product_id', flat=True))
            if len(product_ids) > 1:
                raise LotError(
                    'AMBIGUOUS_LOT_NUMBER',
                    lot_number=lot_number,
                    warehouse=warehouse.code,
                    products=len(product_ids),
                )

        lot = qs.order_by('pk').first()
        if lot is None:
            raise LotNotFound('LOT_NOT_FOUND', lot_number=lot_number, warehouse=warehouse.code)
        return lot

    @classmethod
    def list_movements(cls, lot=None, product=None, warehouse=None):
        """Movement audit trail with filters, oldest first."""
        qs = Movement.objects.all()

        if lot is not None:
            qs = qs.filter(lot=cls.get_lot(lot))

        if product is not None:
            qs = qs.filter(product=resolve_product(product))

        if warehouse is not None:
            qs = qs.filter(warehouse=resolve_warehouse(warehouse))

        return qs.order_by('timestamp', 'pk')
