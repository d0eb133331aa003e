"""
Pytest fixtures for Lotman tests.
"""

from datetime import timedelta

import pytest
from django.core.cache import cache
from django.utils import timezone

from lotman.models import Location, Lot, LotStatus, Product, Warehouse


@pytest.fixture(autouse=True)
def clear_cache():
    """Start every test with an empty listing cache."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def warehouse(db):
    """Create the main test warehouse."""
    return Warehouse.objects.create(code='ist-main', name='Istanbul Main')


@pytest.fixture
def other_warehouse(db):
    """Create a second warehouse."""
    return Warehouse.objects.create(code='ank-north', name='Ankara North')


@pytest.fixture
def location(warehouse):
    """Create a picking location in the main warehouse."""
    return Location.objects.create(warehouse=warehouse, code='A-01-03', zone='picking')


@pytest.fixture
def product(db):
    """Create a plain product (FIFO by default)."""
    return Product.objects.create(sku='SCR-M4', name='Screw M4', category='hardware')


@pytest.fixture
def perishable_product(db):
    """Create a perishable product (FEFO by default)."""
    return Product.objects.create(
        sku='MLK-1L',
        name='Milk 1L',
        category='dairy',
        is_perishable=True,
        has_expiry_date=True,
        shelf_life_days=10,
    )


@pytest.fixture
def electronics_product(db):
    """Create an electronics product (LIFO by default)."""
    return Product.objects.create(sku='PHN-X1', name='Phone X1', category='Electronics')


@pytest.fixture
def today():
    """Return today's date in the active time zone."""
    return timezone.localdate()


@pytest.fixture
def make_lot(warehouse, product, today):
    """
    Factory for lots with explicit quantities and dates.

    Defaults to the main warehouse and the plain product, received today.
    """
    counter = {'n': 0}

    def _make_lot(available=10, reserved=0, product=product, warehouse=warehouse,
                  lot_number=None, received_date=None, expiry_date=None,
                  manufacture_date=None, status=LotStatus.AVAILABLE, location=None):
        counter['n'] += 1
        return Lot.objects.create(
            lot_number=lot_number or f'L{counter["n"]:03d}',
            product=product,
            warehouse=warehouse,
            location=location,
            quantity_on_hand=available + reserved,
            quantity_available=available,
            quantity_reserved=reserved,
            received_date=received_date or today,
            expiry_date=expiry_date,
            manufacture_date=manufacture_date,
            status=status,
        )

    return _make_lot


@pytest.fixture
def days(today):
    """Shift today by n days: days(-3) is three days ago."""
    return lambda n: today + timedelta(days=n)
