"""
Lot expiry: move lots past their expiry date out of the available pool.
"""

import logging

from django.db import transaction
from django.utils import timezone

from lotman import cache
from lotman.conf import lotman_settings
from lotman.models.enums import LotStatus
from lotman.models.lot import Lot
from lotman.services.queries import resolve_warehouse
from lotman.signals import lots_expired, send_on_commit

logger = logging.getLogger('lotman')


class LotExpiry:
    """Expiry maintenance methods."""

    @classmethod
    def sweep_expired_lots(cls, warehouse) -> list[Lot]:
        """
        Mark expired every available lot in the warehouse whose expiry
        date has passed and that still holds stock.

        Expiry is one-way: a later correction of expiry_date does not
        bring the lot back.

        Returns:
            Lots newly set to EXPIRED

        Usage:
            Call periodically via celery beat or cron, or through
            `manage.py sweep_expired_lots`.

        Concurrency:
            - Each batch runs under its own transaction.atomic()
            - Uses select_for_update() with SKIP LOCKED
            - Safe for multiple instances
        """
        warehouse = resolve_warehouse(warehouse)
        today = timezone.localdate()
        batch_size = lotman_settings.EXPIRY_SWEEP_BATCH_SIZE
        expired = []

        while True:
            with transaction.atomic():
                batch = list(
                    Lot.objects.select_for_update(skip_locked=True)
                    .filter(warehouse=warehouse)
                    .past_expiry(today)
                    .order_by('pk')[:batch_size]
                )

                if not batch:
                    break

                now = timezone.now()
                Lot.objects.filter(
                    pk__in=[lot.pk for lot in batch],
                    status=LotStatus.AVAILABLE,
                ).update(status=LotStatus.EXPIRED, updated_at=now)

                for lot in batch:
                    lot.status = LotStatus.EXPIRED
                    lot.updated_at = now

                for product_id in {lot.product_id for lot in batch}:
                    cache.invalidate_after_write(product_id, warehouse.pk)

                send_on_commit(lots_expired, sender=cls, warehouse=warehouse, lots=batch)
                expired.extend(batch)

        if expired:
            logger.info(
                "lot.expired_swept",
                extra={"warehouse": warehouse.code, "expired": len(expired)},
            )
        return expired
