"""
Exceptions for Lotman.

All domain errors are LotError with a structured code for programmatic
handling. Subclasses group the codes callers usually branch on:

    LotNotFound          product, warehouse or lot does not exist
    InsufficientStock    requested more than the eligible lots hold
    ConcurrencyConflict  a lot kept changing under us; retry the call

Database failures are not wrapped: they surface as django.db.DatabaseError.
"""

from typing import Any


class BaseError(Exception):
    """
    Exception with a machine-readable code and free-form context data.

    Attributes:
        code: Error code for programmatic handling
        message: Human-readable message
        data: Additional context data
    """

    _default_messages: dict[str, str] = {}
    default_code: str = ''

    def __init__(self, code: str | None = None, message: str | None = None, **data):
        self.code = code or self.default_code
        self.message = message or self._default_messages.get(self.code, self.code)
        self.data = data
        super().__init__(f"[{self.code}] {self.message}")

    def as_dict(self) -> dict[str, Any]:
        """Serialize to dict (useful for APIs)."""
        return {
            'code': self.code,
            'message': self.message,
            'data': {
                k: v if isinstance(v, (int, float, bool, type(None))) else str(v)
                for k, v in self.data.items()
            },
        }


class LotError(BaseError):
    """
    Structured exception for lot operations.

    Usage:
        try:
            lots.allocate(product, warehouse, 12)
        except LotError as e:
            if e.code == 'INSUFFICIENT_STOCK':
                print(f"Only {e.available} available")
    """

    _default_messages = {
        'PRODUCT_NOT_FOUND': 'Product not found',
        'WAREHOUSE_NOT_FOUND': 'Warehouse not found',
        'LOCATION_NOT_FOUND': 'Location not found',
        'LOT_NOT_FOUND': 'Lot not found',
        'NO_AVAILABLE_LOTS': 'No available lots found for this product',
        'INSUFFICIENT_STOCK': 'Insufficient stock across eligible lots',
        'CONCURRENCY_CONFLICT': 'Lot changed concurrently, retry the allocation',
        'INVALID_QUANTITY': 'Invalid quantity (must be a positive integer)',
        'INVALID_STRATEGY': 'Unknown rotation strategy',
        'INVALID_DATES': 'Expiry date is before manufacture date',
        'INVALID_LOCATION': 'Location does not belong to the warehouse',
        'OVER_RELEASE': 'Release exceeds reserved quantity',
        'AMBIGUOUS_LOT_NUMBER': 'Lot number matches more than one product',
    }

    @property
    def available(self) -> int:
        """Shortcut for data['available']."""
        return self.data.get('available', 0)

    @property
    def requested(self) -> int:
        """Shortcut for data['requested']."""
        return self.data.get('requested', 0)


class LotNotFound(LotError):
    """Referenced product, warehouse or lot does not exist."""

    default_code = 'LOT_NOT_FOUND'


class InsufficientStock(LotError):
    """Requested quantity exceeds the allocatable quantity."""

    default_code = 'INSUFFICIENT_STOCK'

    @property
    def shortfall(self) -> int:
        return max(0, self.requested - self.available)

    def as_dict(self) -> dict[str, Any]:
        result = super().as_dict()
        result['data']['shortfall'] = self.shortfall
        return result


class ConcurrencyConflict(LotError):
    """Conditional update kept failing; safe to retry the whole call."""

    default_code = 'CONCURRENCY_CONFLICT'
