"""
Concurrency tests for allocation.

The deterministic tests inject a competing writer between the read and
the conditional UPDATE. The threaded test runs real parallel requests
against one lot.
"""

import logging
import threading

import pytest
from django.db import connection
from django.db.models import F

from lotman import ConcurrencyConflict, InsufficientStock, LotNotFound, lots
from lotman.models import Lot, Movement
from lotman.services import allocation


def steal(lot_id, quantity):
    """Reserve quantity behind the allocator's back."""
    Lot.objects.filter(pk=lot_id).update(
        quantity_available=F('quantity_available') - quantity,
        quantity_reserved=F('quantity_reserved') + quantity,
    )


@pytest.mark.django_db
class TestConditionalUpdate:
    """Lost races are re-read and retried."""

    def test_stale_read_is_retried_with_fresh_quantity(self, monkeypatch, product, warehouse,
                                                       make_lot, days):
        lot_a = make_lot(available=10, received_date=days(-2))
        lot_b = make_lot(available=10, received_date=days(-1))
        real_reserve = allocation.conditional_reserve
        raced = []

        def racing_reserve(lot_id, quantity):
            if not raced:
                raced.append(lot_id)
                steal(lot_id, 8)
            return real_reserve(lot_id, quantity)

        monkeypatch.setattr(allocation, 'conditional_reserve', racing_reserve)

        results = lots.allocate(product, warehouse, 12)

        assert [(r.lot_id, r.quantity) for r in results] == [(lot_a.pk, 2), (lot_b.pk, 10)]
        lot_a.refresh_from_db()
        lot_b.refresh_from_db()
        assert (lot_a.quantity_available, lot_a.quantity_reserved) == (0, 10)
        assert (lot_b.quantity_available, lot_b.quantity_reserved) == (0, 10)

    def test_drained_lot_is_skipped(self, monkeypatch, product, warehouse, make_lot, days):
        lot_a = make_lot(available=10, received_date=days(-2))
        lot_b = make_lot(available=10, received_date=days(-1))
        real_reserve = allocation.conditional_reserve

        def racing_reserve(lot_id, quantity):
            if lot_id == lot_a.pk:
                steal(lot_id, 10)
            return real_reserve(lot_id, quantity)

        monkeypatch.setattr(allocation, 'conditional_reserve', racing_reserve)

        results = lots.allocate(product, warehouse, 6)

        assert [(r.lot_id, r.quantity) for r in results] == [(lot_b.pk, 6)]

    def test_drained_pool_rolls_back(self, monkeypatch, product, warehouse, make_lot, days):
        lot_a = make_lot(available=5, received_date=days(-2))
        lot_b = make_lot(available=5, received_date=days(-1))
        real_reserve = allocation.conditional_reserve

        def racing_reserve(lot_id, quantity):
            if lot_id == lot_b.pk:
                steal(lot_id, 5)
            return real_reserve(lot_id, quantity)

        monkeypatch.setattr(allocation, 'conditional_reserve', racing_reserve)

        with pytest.raises(InsufficientStock) as exc:
            lots.allocate(product, warehouse, 8)

        assert exc.value.available == 5
        assert exc.value.requested == 8
        lot_a.refresh_from_db()
        assert (lot_a.quantity_available, lot_a.quantity_reserved) == (5, 0)
        assert not Movement.objects.exists()

    def test_exhausted_retries_raise_conflict(self, monkeypatch, caplog, product, warehouse,
                                              make_lot):
        lot = make_lot(available=10)
        monkeypatch.setattr(allocation, 'conditional_reserve', lambda lot_id, quantity: 0)

        with caplog.at_level(logging.INFO, logger='lotman'):
            with pytest.raises(ConcurrencyConflict) as exc:
                lots.allocate(product, warehouse, 4)

        assert exc.value.code == 'CONCURRENCY_CONFLICT'
        assert exc.value.data == {'lot_id': lot.pk, 'attempts': 3}
        conflicts = [r for r in caplog.records if r.getMessage() == 'lot.reserve.conflict']
        assert len(conflicts) == 3
        lot.refresh_from_db()
        assert (lot.quantity_available, lot.quantity_reserved) == (10, 0)
        assert not Movement.objects.exists()

    def test_retry_count_from_settings(self, settings, monkeypatch, product, warehouse, make_lot):
        settings.LOTMAN = {'ALLOCATION_RETRIES': 5}
        make_lot(available=10)
        calls = []

        def never(lot_id, quantity):
            calls.append(lot_id)
            return 0

        monkeypatch.setattr(allocation, 'conditional_reserve', never)

        with pytest.raises(ConcurrencyConflict):
            lots.allocate(product, warehouse, 4)

        assert len(calls) == 5

    def test_candidates_locked_in_id_order(self, product, warehouse, make_lot, days):
        first = make_lot(received_date=days(-1))
        second = make_lot(received_date=days(-9))
        make_lot(available=0, reserved=3)

        locked = allocation.lock_candidates(product, warehouse)

        assert [lot.pk for lot in locked] == [first.pk, second.pk]

    @pytest.mark.parametrize('strategy', ['FIFO', 'LIFO'])
    def test_walk_follows_rotation_over_locked_rows(self, monkeypatch, strategy, product,
                                                    warehouse, make_lot, days):
        newer = make_lot(available=5, received_date=days(-1))
        older = make_lot(available=5, received_date=days(-9))
        real_lock = allocation.lock_candidates
        locked = []

        def spying_lock(product, warehouse):
            rows = real_lock(product, warehouse)
            locked.append([lot.pk for lot in rows])
            return rows

        monkeypatch.setattr(allocation, 'lock_candidates', spying_lock)

        results = lots.allocate(product, warehouse, 7, strategy=strategy)

        assert locked == [[newer.pk, older.pk]]
        expected = [older.pk, newer.pk] if strategy == 'FIFO' else [newer.pk, older.pk]
        assert [r.lot_id for r in results] == expected
        assert [r.quantity for r in results] == [5, 2]

    def test_conditional_reserve_refuses_short_lot(self, make_lot):
        lot = make_lot(available=3)

        assert allocation.conditional_reserve(lot.pk, 4) == 0
        assert allocation.conditional_reserve(lot.pk, 3) == 1

        lot.refresh_from_db()
        assert (lot.quantity_available, lot.quantity_reserved) == (0, 3)


@pytest.mark.django_db(transaction=True)
class TestParallelAllocation:
    """Parallel requests never oversell a lot."""

    THREADS = 6
    PER_REQUEST = 3

    def test_no_oversell(self, product, warehouse, make_lot):
        lot = make_lot(available=10)
        barrier = threading.Barrier(self.THREADS)
        successes, failures, errors = [], [], []
        lock = threading.Lock()

        def worker():
            try:
                barrier.wait()
                results = lots.allocate(product.pk, warehouse.pk, self.PER_REQUEST)
                with lock:
                    successes.append(results)
            except (InsufficientStock, LotNotFound, ConcurrencyConflict) as e:
                with lock:
                    failures.append(e)
            except Exception as e:
                with lock:
                    errors.append(e)
            finally:
                connection.close()

        threads = [threading.Thread(target=worker) for _ in range(self.THREADS)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert len(successes) + len(failures) == self.THREADS
        assert len(successes) == 10 // self.PER_REQUEST

        lot.refresh_from_db()
        reserved = self.PER_REQUEST * len(successes)
        assert lot.quantity_reserved == reserved
        assert lot.quantity_available == 10 - reserved
        assert lot.quantity_on_hand == lot.quantity_available + lot.quantity_reserved
        assert Movement.objects.filter(lot=lot).count() == len(successes)

    def test_opposite_rotations_over_same_lots(self, product, warehouse, make_lot, days):
        older = make_lot(available=5, received_date=days(-9))
        newer = make_lot(available=5, received_date=days(-1))
        barrier = threading.Barrier(2)
        successes, failures, errors = [], [], []
        lock = threading.Lock()

        def worker(strategy):
            try:
                barrier.wait()
                results = lots.allocate(product.pk, warehouse.pk, 6, strategy=strategy)
                with lock:
                    successes.append(results)
            except (InsufficientStock, ConcurrencyConflict) as e:
                with lock:
                    failures.append(e)
            except Exception as e:
                with lock:
                    errors.append(e)
            finally:
                connection.close()

        threads = [threading.Thread(target=worker, args=(s,)) for s in ('FIFO', 'LIFO')]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert len(successes) == 1
        assert len(failures) == 1
        assert sum(r.quantity for r in successes[0]) == 6
        assert {r.lot_id for r in successes[0]} == {older.pk, newer.pk}

        older.refresh_from_db()
        newer.refresh_from_db()
        assert older.quantity_reserved + newer.quantity_reserved == 6
        assert older.quantity_available + newer.quantity_available == 4
