"""
Lotman Models.

Core models for lot inventory:
- Warehouse: Site that holds stock
- Location: Storage slot inside a warehouse
- Product: Attributes that drive rotation and expiry
- Lot: Quantity state of one received batch
- Movement: Immutable ledger of quantity changes
"""

from lotman.models.enums import LotStatus, MovementType, RotationStrategy
from lotman.models.lot import Lot
from lotman.models.movement import Movement
from lotman.models.product import Product
from lotman.models.warehouse import Location, Warehouse

__all__ = [
    'LotStatus',
    'MovementType',
    'RotationStrategy',
    'Warehouse',
    'Location',
    'Product',
    'Lot',
    'Movement',
]
