"""Justice Service Protocol Interfaces.

Travel checks jail and exile status; accusation review schedules trials.
"""

from typing import Protocol

from myrefell.models import Accusation, Crime, Player, Trial


class IJusticeService(Protocol):
    """Protocol for punishment status queries."""

    def is_jailed(self, player: Player) -> bool: ...

    def is_outlaw(self, player: Player) -> bool: ...

    def is_exiled_from(self, player: Player, location_type: str, location_id: int) -> bool: ...


class ITrialService(Protocol):
    """Protocol for court scheduling and judicial authority."""

    def has_judicial_authority(
        self, player: Player, location_type: str, location_id: int
    ) -> bool:
        """True if the player may review accusations at the location."""
        ...

    def schedule_trial(self, crime: Crime, accusation: Accusation | None = None) -> Trial:
        """Create a scheduled trial for a crime. Does not commit."""
        ...
