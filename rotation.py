"""
Rotation rules for lot consumption order.

Examples:
    - Milk (perishable): FEFO, earliest expiry first
    - Phone (electronics): LIFO, newest receipt first
    - Screws: FIFO, oldest receipt first
"""

from datetime import date

from django.db.models import F

from lotman.conf import lotman_settings
from lotman.exceptions import LotError
from lotman.models.enums import RotationStrategy

# Defaults when product doesn't expose the attribute
PRODUCT_DEFAULTS = {
    'is_perishable': False,
    'has_expiry_date': False,
    'category': '',
}


def _get_product_attr(product, attr: str):
    """Get product attribute with fallback to default."""
    value = getattr(product, attr, None)
    if value is not None:
        return value
    return PRODUCT_DEFAULTS.get(attr)


def determine_rotation_rule(product, default: RotationStrategy | str | None = None) -> RotationStrategy:
    """
    Default rotation strategy for a product.

    Precedence:
        1. perishable / has expiry date  -> FEFO
        2. category in LIFO_CATEGORIES   -> LIFO
        3. default, or FIFO

    Args:
        product: Any object with is_perishable, has_expiry_date, category
        default: Fallback strategy when no attribute rule applies

    Returns:
        RotationStrategy
    """
    if _get_product_attr(product, 'is_perishable') or _get_product_attr(product, 'has_expiry_date'):
        return RotationStrategy.FEFO

    category = str(_get_product_attr(product, 'category') or '').lower()
    lifo_categories = {c.lower() for c in lotman_settings.LIFO_CATEGORIES}
    if category and category in lifo_categories:
        return RotationStrategy.LIFO

    if default:
        return coerce_strategy(default)
    return RotationStrategy.FIFO


def coerce_strategy(value) -> RotationStrategy:
    """
    Parse a strategy name ('fifo', 'FEFO', RotationStrategy.LIFO).

    Raises:
        LotError('INVALID_STRATEGY'): If the name is unknown
    """
    if isinstance(value, RotationStrategy):
        return value
    try:
        return RotationStrategy(str(value).upper())
    except ValueError:
        raise LotError('INVALID_STRATEGY', strategy=value) from None


def resolve_strategy(strategy, product) -> RotationStrategy:
    """Explicit strategy wins; otherwise derive it from the product."""
    if strategy is None or strategy == '':
        return determine_rotation_rule(product)
    return coerce_strategy(strategy)


def order_lots(lots, strategy):
    """
    Order a Lot queryset by rotation strategy.

    Ties are broken by lot id so the order is deterministic.

    Args:
        lots: Lot QuerySet
        strategy: RotationStrategy

    Returns:
        Ordered QuerySet
    """
    strategy = coerce_strategy(strategy)

    if strategy == RotationStrategy.FEFO:
        return lots.order_by(F('expiry_date').asc(nulls_last=True), 'pk')
    if strategy == RotationStrategy.LIFO:
        return lots.order_by('-received_date', 'pk')
    return lots.order_by('received_date', 'pk')


def sort_lots(lots, strategy) -> list:
    """
    In-memory version of order_lots for already loaded lots.

    Args:
        lots: Iterable of objects with pk, received_date, expiry_date
        strategy: RotationStrategy

    Returns:
        New sorted list
    """
    strategy = coerce_strategy(strategy)
    lots = list(lots)

    if strategy == RotationStrategy.FEFO:
        # (no expiry sorts last, expiry, id)
        return sorted(lots, key=lambda lot: (
            lot.expiry_date is None,
            lot.expiry_date or date.max,
            lot.pk,
        ))

    # sorted() is stable, also with reverse=True: ties keep id order
    lots.sort(key=lambda lot: lot.pk)
    return sorted(
        lots,
        key=lambda lot: lot.received_date or date.min,
        reverse=strategy == RotationStrategy.LIFO,
    )
