"""Treasury Service Protocol Interface.

Services that move gold into or out of a location treasury (fines, location
bounties) depend on this protocol rather than on the tax service itself.
"""

from typing import Protocol

from myrefell.models import LocationTreasury, TreasuryTransaction


class ITreasuryService(Protocol):
    """Protocol defining ledgered access to location treasuries."""

    def get_treasury(self, location_type: str, location_id: int) -> LocationTreasury:
        """Fetch the treasury of a location, creating it if missing."""
        ...

    def deposit(
        self,
        treasury: LocationTreasury,
        amount: int,
        transaction_type: str,
        description: str,
        related_player_id: int | None = None,
    ) -> TreasuryTransaction:
        """Add gold to a treasury and record a ledger entry."""
        ...

    def withdraw(
        self,
        treasury: LocationTreasury,
        amount: int,
        transaction_type: str,
        description: str,
        related_player_id: int | None = None,
    ) -> TreasuryTransaction:
        """Remove gold from a treasury and record a ledger entry.

        Raises:
            ValueError: If the treasury balance is too low
        """
        ...
