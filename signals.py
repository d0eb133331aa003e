"""
Outbound lot events.

Sent after the surrounding transaction commits, so receivers only see
committed state. Delivery guarantees beyond that belong to whatever the
receivers forward to (event bus, webhooks).

Usage:
    from lotman.signals import lots_allocated

    @receiver(lots_allocated)
    def notify_picking(sender, product, warehouse, allocations, actor, **kwargs):
        ...
"""

import logging

from django.db import transaction
from django.dispatch import Signal

logger = logging.getLogger('lotman')

# product, warehouse, lot, actor
lot_received = Signal()

# product, warehouse, allocations, actor, reference
lots_allocated = Signal()

# lot, quantity, actor
lot_released = Signal()

# warehouse, lots
lots_expired = Signal()


def _send(signal: Signal, sender, **kwargs) -> None:
    for receiver, result in signal.send_robust(sender=sender, **kwargs):
        if isinstance(result, Exception):
            logger.error(
                "lot.signal.receiver_failed",
                extra={"receiver": getattr(receiver, '__qualname__', repr(receiver))},
                exc_info=result,
            )


def send_on_commit(signal: Signal, sender, **kwargs) -> None:
    """
    Queue the signal for when the current transaction commits.

    Receiver errors are logged, never raised into the lot operation.
    """
    transaction.on_commit(lambda: _send(signal, sender, **kwargs))
