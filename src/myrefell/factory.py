"""Service Factory for Myrefell.

This module provides factory functions for creating service instances with
proper dependency wiring. Use these functions in production code to ensure
all service dependencies are correctly initialized.

For testing, inject protocol-based fakes instead of using these factories.

Example:
    # Production usage
    from myrefell.factory import create_travel_service
    travel = create_travel_service(session)

    # Testing usage
    from myrefell.services.travel_service import TravelService

    class FakeJustice:
        def is_jailed(self, player):
            return True

        def is_outlaw(self, player):
            return False

        def is_exiled_from(self, player, location_type, location_id):
            return False

    travel = TravelService(session, FakeJustice(), LocationService(session))
"""

from sqlalchemy.orm import Session

from myrefell.config import get_settings
from myrefell.services.crime_service import CrimeService
from myrefell.services.festival_service import FestivalService
from myrefell.services.inventory_service import InventoryService
from myrefell.services.location_service import LocationService
from myrefell.services.religion_hq_service import ReligionHqService
from myrefell.services.tax_service import TaxService
from myrefell.services.tournament_service import TournamentService
from myrefell.services.travel_service import TravelService
from myrefell.services.trial_service import TrialService


def create_location_service(session: Session) -> LocationService:
    """Create a LocationService.

    Args:
        session: Database session

    Returns:
        Fully initialized LocationService
    """
    return LocationService(session)


def create_tax_service(session: Session) -> TaxService:
    """Create a TaxService with all dependencies.

    Args:
        session: Database session

    Returns:
        Fully initialized TaxService with LocationService dependency
    """
    return TaxService(session, create_location_service(session))


def create_trial_service(session: Session) -> TrialService:
    """Create a TrialService with all dependencies.

    Args:
        session: Database session

    Returns:
        Fully initialized TrialService; fines and bounties go through the TaxService treasury
    """
    locations = create_location_service(session)
    return TrialService(session, TaxService(session, locations), locations)


def create_crime_service(session: Session) -> CrimeService:
    """Create a CrimeService with all dependencies.

    Args:
        session: Database session

    Returns:
        Fully initialized CrimeService wired to a TrialService sharing its treasury
    """
    locations = create_location_service(session)
    treasury = TaxService(session, locations)
    trials = TrialService(session, treasury, locations)
    return CrimeService(session, trials, treasury, locations)


def create_festival_service(session: Session) -> FestivalService:
    return FestivalService(session, create_location_service(session))


def create_tournament_service(session: Session) -> TournamentService:
    return TournamentService(session)


def create_inventory_service(session: Session) -> InventoryService:
    return InventoryService(session)


def create_religion_hq_service(session: Session) -> ReligionHqService:
    """Create a ReligionHqService with all dependencies.

    Args:
        session: Database session

    Returns:
        Fully initialized ReligionHqService with InventoryService and LocationService
    """
    return ReligionHqService(
        session, create_inventory_service(session), create_location_service(session)
    )


def create_travel_service(session: Session) -> TravelService:
    """Create a TravelService with all dependencies.

    Args:
        session: Database session

    Returns:
        Fully initialized TravelService; jail and exile checks come from CrimeService
    """
    return TravelService(
        session,
        create_crime_service(session),
        create_location_service(session),
        allow_dev_actions=get_settings().allow_dev_actions,
    )
