"""Service layer for Myrefell game logic.

This module provides the service layer implementation for the Myrefell
medieval life simulation. Services use protocol-based dependency inversion:

- Services depend on Protocol interfaces (ILocationService, ITreasuryService, etc.)
- Use factory.py for production dependency wiring
- Inject protocol-based fakes for testing (avoid complex mocking)

Architecture:
    - LocationService: Location lookups and the village -> barony -> kingdom hierarchy
    - TaxService: Location treasuries, tax rates, daily collection and salaries
    - TrialService: Courts, trial scheduling, verdicts, punishments and appeals
    - CrimeService: Accusations, bounties, pardons and punishment status
    - FestivalService: Festival scheduling, lifecycle and participation
    - TournamentService: Registration, seeded brackets, match resolution and prizes
    - ReligionHqService: Religion treasuries, HQ tiers, features, projects and prayer
    - InventoryService: Inventory slots, stacking and equipment
    - TravelService: Journeys between locations
    - run_world_tick: Timed processing across all of the above

Production Usage:
    from myrefell.factory import create_crime_service
    crime = create_crime_service(session)
    crime.post_bounty(poster, target_id=7, reward=500, capture_type="alive")

Testing Usage:
    from myrefell.services.travel_service import TravelService

    class FakeJustice:
        def is_jailed(self, player):
            return False

        def is_outlaw(self, player):
            return False

        def is_exiled_from(self, player, location_type, location_id):
            return False

    service = TravelService(session, FakeJustice(), LocationService(session))
    service.start_travel(player, "village", 2)
"""

from myrefell.services.crime_service import CrimeService
from myrefell.services.errors import ForbiddenError, NotFoundError
from myrefell.services.festival_service import FestivalService
from myrefell.services.inventory_service import InventoryService
from myrefell.services.location_service import LocationService
from myrefell.services.religion_hq_service import ReligionHqService
from myrefell.services.tax_service import TaxService
from myrefell.services.tick_service import run_world_tick
from myrefell.services.tournament_service import TournamentService
from myrefell.services.travel_service import TravelService
from myrefell.services.trial_service import TrialService

__all__ = [
    "CrimeService",
    "FestivalService",
    "ForbiddenError",
    "InventoryService",
    "LocationService",
    "NotFoundError",
    "ReligionHqService",
    "TaxService",
    "TournamentService",
    "TravelService",
    "TrialService",
    "run_world_tick",
]
