"""
Lot Service: The single public interface for all lot operations.

Usage:
    from lotman import lots, LotError

    lots.receive(50, milk, main_wh, expiry_date=friday)
    results = lots.allocate(milk, main_wh, 12, actor='picker-7')
    lots.release(results[0].lot_id, results[0].quantity)
    lots.sweep_expired_lots(main_wh)
"""

from lotman.rotation import determine_rotation_rule
from lotman.services.allocation import LotAllocation
from lotman.services.expiry import LotExpiry
from lotman.services.queries import LotQueries
from lotman.services.receiving import LotReceiving


class Lots(LotQueries, LotReceiving, LotAllocation, LotExpiry):
    """
    Single interface for all lot operations.

    Products, warehouses and lots are accepted as model instances or
    primary keys.

    IMPORTANT: Lot quantities change only through these methods. All
    state-changing methods use atomic transactions; see each method's
    docstring for its locking.
    """

    determine_rotation_rule = staticmethod(determine_rotation_rule)
