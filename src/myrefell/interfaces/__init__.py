"""Protocol-based interfaces for Myrefell services.

This module exports all service protocol interfaces, providing a clear contract
for service implementations and enabling dependency injection and testing.
"""

from myrefell.interfaces.inventory import IInventoryService
from myrefell.interfaces.justice import IJusticeService, ITrialService
from myrefell.interfaces.location import ILocationService
from myrefell.interfaces.treasury import ITreasuryService

__all__ = [
    "IInventoryService",
    "IJusticeService",
    "ILocationService",
    "ITreasuryService",
    "ITrialService",
]
