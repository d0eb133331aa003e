"""
Lot allocation: reserve lots by rotation policy, and release them.

Every quantity write is a single conditional UPDATE with F() expressions:

    UPDATE lot SET available = available - x, reserved = reserved + x
     WHERE id = :id AND status = 'available' AND available >= x

so concurrent allocations can never drive a lot negative. Zero affected
rows means another request got there first: re-read and retry.

Candidate rows are locked in primary-key order before the walk, whatever
the rotation order, so two allocations over the same lots always queue
instead of deadlocking.
"""

import logging
from dataclasses import dataclass
from datetime import date

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from lotman import cache
from lotman.conf import lotman_settings
from lotman.exceptions import ConcurrencyConflict, InsufficientStock, LotError, LotNotFound
from lotman.models.enums import LotStatus, MovementType
from lotman.models.lot import Lot
from lotman.models.movement import Movement
from lotman.rotation import coerce_strategy, resolve_strategy, sort_lots
from lotman.services.queries import resolve_product, resolve_warehouse
from lotman.signals import lot_released, lots_allocated, send_on_commit

logger = logging.getLogger('lotman')


@dataclass(frozen=True)
class AllocationResult:
    """Quantity reserved from one lot."""

    lot_id: int
    lot_number: str
    quantity: int
    expiry_date: date | None = None
    manufacture_date: date | None = None
    location_code: str | None = None


def _validate_quantity(quantity) -> None:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise LotError('INVALID_QUANTITY', requested=quantity)


def lock_candidates(product, warehouse) -> list[Lot]:
    """
    Lock the allocatable lots of a product in a warehouse.

    Rows are locked in primary-key order; callers re-sort by rotation.
    Must run inside transaction.atomic().
    """
    return list(
        Lot.objects.for_product(product, warehouse).allocatable()
        .select_related('location')
        .select_for_update(of=('self',))
        .order_by('pk')
    )


def conditional_reserve(lot_id: int, quantity: int) -> int:
    """
    Move quantity from available to reserved if the lot still has it.

    Returns:
        Number of rows updated (0 or 1)
    """
    return Lot.objects.filter(
        pk=lot_id,
        status=LotStatus.AVAILABLE,
        quantity_available__gte=quantity,
    ).update(
        quantity_available=F('quantity_available') - quantity,
        quantity_reserved=F('quantity_reserved') + quantity,
        updated_at=timezone.now(),
    )


def _reserve_from_lot(lot: Lot, wanted: int) -> int:
    """
    Reserve up to `wanted` units from one lot.

    Retries with a fresh read when the conditional update loses a race.

    Returns:
        Units reserved (0 when the lot ran dry or left the pool)

    Raises:
        ConcurrencyConflict: Retries exhausted while the lot still had stock
    """
    attempts = max(1, lotman_settings.ALLOCATION_RETRIES)
    current = lot

    for attempt in range(1, attempts + 1):
        take = min(wanted, current.quantity_available)
        if take <= 0 or current.status != LotStatus.AVAILABLE:
            return 0

        if conditional_reserve(current.pk, take):
            return take

        logger.info(
            "lot.reserve.conflict",
            extra={"lot_id": current.pk, "qty": take, "attempt": attempt},
        )
        current = Lot.objects.filter(pk=current.pk).first()
        if current is None:
            return 0

    if current.status == LotStatus.AVAILABLE and current.quantity_available > 0:
        raise ConcurrencyConflict(lot_id=lot.pk, attempts=attempts)
    return 0


class LotAllocation:
    """Reservation and release methods."""

    @classmethod
    def allocate(cls, product, warehouse, quantity, strategy=None,
                 actor='', reference='', reason='picking_allocation'):
        """
        Reserve quantity across lots in rotation order.

        1. Validates quantity and strategy (no database access yet)
        2. Locks allocatable lots in id order (never read from the cache)
        3. Fails fast if their total is short of quantity
        4. Walks lots in rotation order, reserving min(remaining, available)
        5. Records one reservation Movement per touched lot

        Returns:
            List of AllocationResult; quantities sum to `quantity`

        Raises:
            LotError('INVALID_QUANTITY' | 'INVALID_STRATEGY')
            LotNotFound('PRODUCT_NOT_FOUND' | 'WAREHOUSE_NOT_FOUND')
            LotNotFound('NO_AVAILABLE_LOTS'): Nothing to allocate from
            InsufficientStock: Not enough stock; nothing was reserved
            ConcurrencyConflict: A lot kept changing; retry the call

        Concurrency:
            - Runs under transaction.atomic()
            - select_for_update() on candidate lots, in id order
            - Per-lot conditional UPDATE, re-read and retry on conflict
            - Any failure rolls back every reservation of the call
        """
        _validate_quantity(quantity)
        if strategy:
            coerce_strategy(strategy)

        product = resolve_product(product)
        warehouse = resolve_warehouse(warehouse)
        rule = resolve_strategy(strategy, product)

        with transaction.atomic():
            lots = sort_lots(lock_candidates(product, warehouse), rule)

            if not lots:
                raise LotNotFound(
                    'NO_AVAILABLE_LOTS',
                    product=product.sku,
                    warehouse=warehouse.code,
                )

            total_available = sum(lot.quantity_available for lot in lots)
            if total_available < quantity:
                raise InsufficientStock(
                    available=total_available,
                    requested=quantity,
                )

            remaining = quantity
            allocations = []

            for lot in lots:
                if remaining <= 0:
                    break

                taken = _reserve_from_lot(lot, remaining)
                if not taken:
                    continue

                Movement.objects.create(
                    lot=lot,
                    warehouse=warehouse,
                    product=product,
                    movement_type=MovementType.RESERVATION,
                    reason=reason,
                    from_location=lot.location,
                    quantity=taken,
                    lot_number=lot.lot_number,
                    reference=reference,
                    performed_by=str(actor or ''),
                    metadata={'strategy': rule.value},
                )
                allocations.append(AllocationResult(
                    lot_id=lot.pk,
                    lot_number=lot.lot_number,
                    quantity=taken,
                    expiry_date=lot.expiry_date,
                    manufacture_date=lot.manufacture_date,
                    location_code=lot.location.code if lot.location else None,
                ))
                remaining -= taken

            if remaining > 0:
                # Concurrent requests drained the lots after our read
                raise InsufficientStock(
                    available=quantity - remaining,
                    requested=quantity,
                )

            cache.invalidate_after_write(product.pk, warehouse.pk)
            send_on_commit(
                lots_allocated, sender=cls,
                product=product, warehouse=warehouse, allocations=allocations,
                actor=actor, reference=reference,
            )

        logger.info(
            "lot.allocate",
            extra={
                "product": product.sku,
                "warehouse": warehouse.code,
                "qty": quantity,
                "strategy": rule.value,
                "lots": [a.lot_id for a in allocations],
            },
        )
        return allocations

    @classmethod
    def release(cls, lot, quantity, actor='', reference='', reason='allocation_release'):
        """
        Return reserved quantity to available.

        Exact inverse of the reservation done by allocate(). Releasing
        more than is reserved releases only what is reserved, unless
        STRICT_RELEASE is set.

        Returns:
            The updated Lot

        Raises:
            LotError('INVALID_QUANTITY'): If quantity is not a positive integer
            LotNotFound('LOT_NOT_FOUND'): If lot doesn't exist
            LotError('OVER_RELEASE'): quantity > reserved with STRICT_RELEASE

        Concurrency:
            - Runs under transaction.atomic()
            - Uses select_for_update() on the Lot
        """
        _validate_quantity(quantity)
        lot_id = lot.pk if isinstance(lot, Lot) else lot

        with transaction.atomic():
            try:
                locked = Lot.objects.select_for_update().get(pk=lot_id)
            except (Lot.DoesNotExist, ValueError, TypeError):
                raise LotNotFound('LOT_NOT_FOUND', lot_id=lot_id) from None

            released = min(quantity, locked.quantity_reserved)

            if released < quantity:
                if lotman_settings.STRICT_RELEASE:
                    raise LotError(
                        'OVER_RELEASE',
                        lot_id=locked.pk,
                        reserved=locked.quantity_reserved,
                        requested=quantity,
                    )
                logger.warning(
                    "lot.release.clamped",
                    extra={
                        "lot_id": locked.pk,
                        "requested": quantity,
                        "reserved": locked.quantity_reserved,
                    },
                )

            if released:
                Lot.objects.filter(pk=locked.pk).update(
                    quantity_available=F('quantity_available') + released,
                    quantity_reserved=F('quantity_reserved') - released,
                    updated_at=timezone.now(),
                )
                Movement.objects.create(
                    lot=locked,
                    warehouse_id=locked.warehouse_id,
                    product_id=locked.product_id,
                    movement_type=MovementType.RELEASE,
                    reason=reason,
                    to_location=locked.location,
                    quantity=released,
                    lot_number=locked.lot_number,
                    reference=reference,
                    performed_by=str(actor or ''),
                )
                cache.invalidate_after_write(locked.product_id, locked.warehouse_id)
                send_on_commit(
                    lot_released, sender=cls,
                    lot=locked, quantity=released, actor=actor,
                )

            locked.refresh_from_db()

        logger.info(
            "lot.release",
            extra={"lot_id": locked.pk, "qty": released, "requested": quantity},
        )
        return locked
