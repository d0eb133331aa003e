"""
Tests for models, admin and the management command.
"""

from io import StringIO

import pytest
from django.contrib import admin
from django.contrib.messages.storage.cookie import CookieStorage
from django.core.management import CommandError, call_command
from django.db import IntegrityError, transaction
from django.db.models import F

from lotman import lots
from lotman.admin import LotAdmin
from lotman.exceptions import InsufficientStock, LotError
from lotman.models import Location, Lot, LotStatus, Movement, MovementType, Product, Warehouse


pytestmark = pytest.mark.django_db


class TestLot:
    """Lot quantity invariants."""

    def test_unbalanced_quantities_rejected(self, make_lot):
        lot = make_lot(available=10)

        with pytest.raises(IntegrityError), transaction.atomic():
            Lot.objects.filter(pk=lot.pk).update(quantity_available=F('quantity_available') + 1)

    def test_negative_quantity_rejected(self, make_lot):
        lot = make_lot(available=0, reserved=0)

        with pytest.raises(IntegrityError), transaction.atomic():
            Lot.objects.filter(pk=lot.pk).update(
                quantity_available=F('quantity_available') - 1,
                quantity_reserved=F('quantity_reserved') + 1,
            )

    def test_is_expired(self, make_lot, days):
        assert make_lot(expiry_date=days(-1)).is_expired
        assert not make_lot(expiry_date=days(0)).is_expired
        assert not make_lot(expiry_date=None).is_expired

    def test_is_allocatable(self, make_lot):
        assert make_lot(available=1).is_allocatable
        assert not make_lot(available=0, reserved=1).is_allocatable
        assert not make_lot(available=1, status=LotStatus.QUARANTINE).is_allocatable

    def test_str(self, make_lot, days):
        lot = make_lot(available=3, reserved=2, lot_number='L-9', expiry_date=days(1))

        assert str(lot) == f"Lot L-9 (exp:{days(1)}): 3/5"


class TestMovement:
    """Movements are an insert-only ledger."""

    @pytest.fixture
    def movement(self, make_lot, warehouse, product):
        lot = make_lot()
        return Movement.objects.create(
            lot=lot,
            warehouse=warehouse,
            product=product,
            movement_type=MovementType.RECEIPT,
            reason='receiving',
            quantity=10,
            lot_number=lot.lot_number,
        )

    def test_numbered(self, movement):
        assert movement.movement_number.startswith('MOV-')
        assert len(movement.movement_number) == 20

    def test_cannot_update(self, movement):
        movement.quantity = 99

        with pytest.raises(ValueError):
            movement.save()

    def test_cannot_delete(self, movement):
        with pytest.raises(ValueError):
            movement.delete()

        assert Movement.objects.filter(pk=movement.pk).exists()

    def test_reason_required(self, make_lot, warehouse, product):
        with pytest.raises(ValueError):
            Movement.objects.create(
                lot=make_lot(), warehouse=warehouse, product=product,
                movement_type=MovementType.RECEIPT, reason='', quantity=1,
            )

    def test_positive_quantity_required(self, make_lot, warehouse, product):
        with pytest.raises(ValueError):
            Movement.objects.create(
                lot=make_lot(), warehouse=warehouse, product=product,
                movement_type=MovementType.RECEIPT, reason='receiving', quantity=0,
            )


class TestWarehouse:
    """Warehouse and Location."""

    def test_location_code_unique_per_warehouse(self, warehouse, other_warehouse, location):
        Location.objects.create(warehouse=other_warehouse, code=location.code)

        with pytest.raises(IntegrityError), transaction.atomic():
            Location.objects.create(warehouse=warehouse, code=location.code)

    def test_location_str(self, location):
        assert str(location) == 'ist-main/A-01-03'


class TestErrors:
    """Structured errors."""

    def test_as_dict(self):
        error = InsufficientStock(available=3, requested=5, product=Product(sku='X', name='Bolt'))

        assert error.as_dict() == {
            'code': 'INSUFFICIENT_STOCK',
            'message': 'Insufficient stock across eligible lots',
            'data': {'available': 3, 'requested': 5, 'product': 'X Bolt', 'shortfall': 2},
        }
        assert error.shortfall == 2
        assert str(error) == '[INSUFFICIENT_STOCK] Insufficient stock across eligible lots'

    def test_custom_message(self):
        error = LotError('INVALID_QUANTITY', 'Quantity must be whole units')

        assert error.message == 'Quantity must be whole units'
        assert error.available == 0


class TestAdmin:
    """Admin registration and actions."""

    @pytest.mark.parametrize('model', [Warehouse, Location, Product, Lot, Movement])
    def test_registered(self, model):
        assert admin.site.is_registered(model)

    def test_lot_admin_is_read_only(self, rf):
        lot_admin = LotAdmin(Lot, admin.site)
        request = rf.get('/')

        assert not lot_admin.has_add_permission(request)
        assert not lot_admin.has_change_permission(request)
        assert not lot_admin.has_delete_permission(request)

    def test_sweep_action(self, rf, make_lot, days):
        expired = make_lot(expiry_date=days(-1))
        request = rf.post('/')
        request._messages = CookieStorage(request)

        LotAdmin(Lot, admin.site).sweep_expired(request, Lot.objects.all())

        expired.refresh_from_db()
        assert expired.status == LotStatus.EXPIRED
        assert [str(m) for m in request._messages] == ['1 lot(s) expired.']


class TestSweepExpiredLotsCommand:
    """Tests for manage.py sweep_expired_lots."""

    def test_sweeps_active_warehouses(self, warehouse, other_warehouse, make_lot, days):
        make_lot(expiry_date=days(-1))
        make_lot(expiry_date=days(-1), warehouse=other_warehouse)
        out = StringIO()

        call_command('sweep_expired_lots', stdout=out)

        assert 'ist-main: 1 lot(s) expired' in out.getvalue()
        assert 'ank-north: 1 lot(s) expired' in out.getvalue()
        assert not Lot.objects.filter(status=LotStatus.AVAILABLE).exists()

    def test_single_warehouse(self, warehouse, other_warehouse, make_lot, days):
        make_lot(expiry_date=days(-1))
        elsewhere = make_lot(expiry_date=days(-1), warehouse=other_warehouse)
        out = StringIO()

        call_command('sweep_expired_lots', '--warehouse', 'ist-main', stdout=out)

        assert 'ist-main: 1 lot(s) expired' in out.getvalue()
        assert 'ank-north' not in out.getvalue()
        elsewhere.refresh_from_db()
        assert elsewhere.status == LotStatus.AVAILABLE

    def test_dry_run_changes_nothing(self, warehouse, make_lot, days):
        lot = make_lot(expiry_date=days(-1))
        out = StringIO()

        call_command('sweep_expired_lots', '--dry-run', stdout=out)

        assert 'ist-main: 1 lot(s) would be expired' in out.getvalue()
        lot.refresh_from_db()
        assert lot.status == LotStatus.AVAILABLE

    def test_unknown_warehouse(self, db):
        with pytest.raises(CommandError):
            call_command('sweep_expired_lots', '--warehouse', 'nowhere')


class TestEndToEnd:
    """Full lot lifecycle for one product."""

    def test_lifecycle(self, perishable_product, warehouse, days):
        old = lots.receive(5, perishable_product, warehouse, expiry_date=days(2))
        new = lots.receive(10, perishable_product, warehouse, expiry_date=days(9))

        results = lots.allocate(perishable_product, warehouse, 8, reference='PO-1')
        assert [(r.lot_id, r.quantity) for r in results] == [(old.pk, 5), (new.pk, 3)]

        lots.release(new, 3, reference='PO-1')
        assert lots.available_quantity(perishable_product, warehouse) == 10

        with pytest.raises(InsufficientStock):
            lots.allocate(perishable_product, warehouse, 11)

        types = list(lots.list_movements(product=perishable_product)
                     .values_list('movement_type', flat=True))
        assert types == [
            MovementType.RECEIPT,
            MovementType.RECEIPT,
            MovementType.RESERVATION,
            MovementType.RESERVATION,
            MovementType.RELEASE,
        ]
