"""
Lot services: modular organization of lot operations.

Re-exports all public classes:
    from lotman.services import LotQueries, LotReceiving, LotAllocation, LotExpiry
"""

from lotman.services.allocation import AllocationResult, LotAllocation
from lotman.services.expiry import LotExpiry
from lotman.services.queries import LotQueries
from lotman.services.receiving import LotReceiving

__all__ = [
    'AllocationResult',
    'LotQueries',
    'LotReceiving',
    'LotAllocation',
    'LotExpiry',
]
