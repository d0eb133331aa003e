"""
Lot receiving: stock enters a warehouse as a new lot.
"""

import logging
import uuid
from datetime import timedelta

from django.db import transaction
from django.utils import timezone

from lotman import cache
from lotman.exceptions import LotError
from lotman.models.enums import LotStatus, MovementType
from lotman.models.lot import Lot
from lotman.models.movement import Movement
from lotman.services.queries import resolve_location, resolve_product, resolve_warehouse
from lotman.signals import lot_received, send_on_commit

logger = logging.getLogger('lotman')


def _is_positive_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def _generate_lot_number(received_date) -> str:
    return f"LOT-{received_date:%Y%m%d}-{uuid.uuid4().hex[:6].upper()}"


class LotReceiving:
    """Stock entry methods."""

    @classmethod
    def receive(cls, quantity, product, warehouse, lot_number='', location=None,
                expiry_date=None, manufacture_date=None, received_date=None,
                actor='', reference='', reason='receiving', **metadata):
        """
        Stock entry.

        Creates a new Lot with on_hand = available = quantity and records
        a receipt Movement.

        When expiry_date is not given and the product has shelf_life_days,
        expiry is derived from manufacture_date (or received_date).

        Raises:
            LotError('INVALID_QUANTITY'): If quantity is not a positive integer
            LotError('INVALID_DATES'): If expiry_date < manufacture_date
            LotNotFound: Unknown product, warehouse or location
        """
        if not _is_positive_int(quantity):
            raise LotError('INVALID_QUANTITY', requested=quantity)

        product = resolve_product(product)
        warehouse = resolve_warehouse(warehouse)
        received = received_date or timezone.localdate()

        if location is not None:
            location = resolve_location(location)
            if location.warehouse_id != warehouse.pk:
                raise LotError(
                    'INVALID_LOCATION', location=str(location), warehouse=warehouse.code,
                )

        if expiry_date is None and product.shelf_life_days is not None:
            expiry_date = (manufacture_date or received) + timedelta(days=product.shelf_life_days)

        if expiry_date and manufacture_date and expiry_date < manufacture_date:
            raise LotError(
                'INVALID_DATES',
                manufacture_date=manufacture_date,
                expiry_date=expiry_date,
            )

        with transaction.atomic():
            lot = Lot.objects.create(
                lot_number=lot_number or _generate_lot_number(received),
                product=product,
                warehouse=warehouse,
                location=location,
                quantity_on_hand=quantity,
                quantity_available=quantity,
                quantity_reserved=0,
                manufacture_date=manufacture_date,
                expiry_date=expiry_date,
                received_date=received,
                status=LotStatus.AVAILABLE,
                metadata=metadata,
            )

            Movement.objects.create(
                lot=lot,
                warehouse=warehouse,
                product=product,
                movement_type=MovementType.RECEIPT,
                reason=reason,
                to_location=location,
                quantity=quantity,
                lot_number=lot.lot_number,
                reference=reference,
                performed_by=str(actor or ''),
            )

            cache.invalidate_after_write(product.pk, warehouse.pk)
            send_on_commit(
                lot_received, sender=cls,
                product=product, warehouse=warehouse, lot=lot, actor=actor,
            )

        logger.info(
            "lot.receive",
            extra={
                "product": str(product),
                "warehouse": warehouse.code,
                "lot_id": lot.pk,
                "lot_number": lot.lot_number,
                "qty": quantity,
            },
        )
        return lot
