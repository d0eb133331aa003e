"""
Django Lotman: Lot inventory allocation for warehouses.

Receives stock as dated lots, reserves them by rotation policy
(FIFO / FEFO / LIFO) and sweeps expired lots out of the pool.

Usage:
    from lotman import lots, LotError

    lots.receive(20, milk, main_wh, expiry_date=next_week)
    lots.allocate(milk, main_wh, 12, actor='picker-7')
    lots.list_available_lots(milk, main_wh)  # FEFO for perishables
"""


def __getattr__(name):
    """Lazy import to avoid circular imports during app loading."""
    if name == 'lots':
        from lotman.service import Lots
        return Lots
    elif name == 'LotError':
        from lotman.exceptions import LotError
        return LotError
    elif name == 'LotNotFound':
        from lotman.exceptions import LotNotFound
        return LotNotFound
    elif name == 'InsufficientStock':
        from lotman.exceptions import InsufficientStock
        return InsufficientStock
    elif name == 'ConcurrencyConflict':
        from lotman.exceptions import ConcurrencyConflict
        return ConcurrencyConflict
    elif name == 'AllocationResult':
        from lotman.services.allocation import AllocationResult
        return AllocationResult
    elif name == 'Warehouse':
        from lotman.models.warehouse import Warehouse
        return Warehouse
    elif name == 'Location':
        from lotman.models.warehouse import Location
        return Location
    elif name == 'Product':
        from lotman.models.product import Product
        return Product
    elif name == 'Lot':
        from lotman.models.lot import Lot
        return Lot
    elif name == 'Movement':
        from lotman.models.movement import Movement
        return Movement
    elif name == 'LotStatus':
        from lotman.models.enums import LotStatus
        return LotStatus
    elif name == 'MovementType':
        from lotman.models.enums import MovementType
        return MovementType
    elif name == 'RotationStrategy':
        from lotman.models.enums import RotationStrategy
        return RotationStrategy
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    'lots',
    'LotError',
    'LotNotFound',
    'InsufficientStock',
    'ConcurrencyConflict',
    'AllocationResult',
    'Warehouse',
    'Location',
    'Product',
    'Lot',
    'Movement',
    'LotStatus',
    'MovementType',
    'RotationStrategy',
]

__version__ = '0.1.0'
