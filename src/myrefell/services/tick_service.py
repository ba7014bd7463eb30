"""World Tick Service for Myrefell.

The world tick advances everything that happens on a timer:

1. Travel arrivals
2. Jail releases
3. Bounty expiry
4. Festival lifecycle (start and end)
5. Headquarters construction completion
6. Daily taxes
7. Role salaries

Taxes and salaries are keyed by the calendar day of ``now``; both are
idempotent per day, so running several ticks in a day is harmless.
"""

import logging
from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session

from myrefell.models import utc_now
from myrefell.services.crime_service import CrimeService
from myrefell.services.festival_service import FestivalService
from myrefell.services.inventory_service import InventoryService
from myrefell.services.location_service import LocationService
from myrefell.services.religion_hq_service import ReligionHqService
from myrefell.services.tax_service import TaxService
from myrefell.services.travel_service import TravelService
from myrefell.services.trial_service import TrialService

logger = logging.getLogger(__name__)


def run_world_tick(session: Session, now: datetime | None = None) -> dict[str, Any]:
    """Run one world tick.

    Args:
        session: Database session
        now: Moment the tick runs at (defaults to the current UTC time)

    Returns:
        Dictionary with the counts produced by each phase
    """
    now = now or utc_now()
    period = now.date().isoformat()

    locations = LocationService(session)
    treasury = TaxService(session, locations)
    trials = TrialService(session, treasury, locations)
    crime = CrimeService(session, trials, treasury, locations)

    # Phase 1: Arrivals
    arrivals = TravelService(session, crime, locations).process_arrivals(now)

    # Phase 2-3: Justice
    released = crime.process_jail_releases(now)
    expired = crime.expire_bounties(now)

    # Phase 4: Festivals
    festivals = FestivalService(session, locations).process_festivals(now)

    # Phase 5: Construction
    religion = ReligionHqService(session, InventoryService(session), locations)
    constructions = religion.process_constructions(now)

    # Phase 6-7: Economy
    taxes = treasury.collect_daily_taxes(period)
    salaries = treasury.distribute_salaries(period)

    summary = {
        "ran_at": now.isoformat(),
        "period": period,
        "arrivals": arrivals,
        "jail_releases": released,
        "bounties_expired": expired,
        "festivals_started": festivals["started"],
        "festivals_ended": festivals["ended"],
        "constructions_completed": constructions,
        "taxes": taxes,
        "salaries": salaries,
    }
    logger.info("World tick complete", extra={"summary": summary})
    return summary
