"""Travel Service for Myrefell.

Players move between locations on the world map. A journey costs a little
energy up front and takes time proportional to the straight-line distance,
shortened by the traveller's agility. Arrival is completed either when the
player checks in after the arrival time or by the world tick.
"""

import logging
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy.orm import Session

from myrefell.domain import rules
from myrefell.interfaces import IJusticeService, ILocationService
from myrefell.models import Player, utc_now
from myrefell.services.errors import ForbiddenError
from myrefell.services.location_service import distance_between

logger = logging.getLogger(__name__)

DISTANCE_DIVISOR = rules.TRAVEL_DISTANCE_DIVISOR
ENERGY_COST = rules.TRAVEL_ENERGY_COST
MAX_TRAVEL_DISTANCE = rules.MAX_TRAVEL_DISTANCE


def agility_bonus(agility_level: int) -> float:
    """Fraction of travel time saved by agility, capped at 25%."""
    return min(rules.MAX_AGILITY_BONUS, agility_level * rules.AGILITY_BONUS_PER_LEVEL)


def travel_seconds(distance: float, agility_level: int = 1) -> int:
    """Seconds needed to cover ``distance`` map units, never less than a minute.

    Args:
        distance: Euclidean distance between origin and destination
        agility_level: The traveller's agility skill level

    Returns:
        Journey length in whole seconds
    """
    minutes = distance / DISTANCE_DIVISOR * (1 - agility_bonus(agility_level))
    return max(rules.MIN_TRAVEL_SECONDS, round(minutes * 60))


class TravelService:
    """Service for starting, tracking and completing journeys."""

    def __init__(
        self,
        session: Session,
        justice: IJusticeService,
        locations: ILocationService,
        allow_dev_actions: bool = False,
    ):
        self.session = session
        self.justice = justice
        self.locations = locations
        self.allow_dev_actions = allow_dev_actions

    def _origin(self, player: Player) -> tuple[float, float]:
        return self.locations.coordinates(
            player.current_location_type, player.current_location_id
        ) or (0.0, 0.0)

    def travel_time_to(self, player: Player, destination_type: str, destination_id: int) -> int:
        destination = self.locations.coordinates(destination_type, destination_id)
        if destination is None:
            raise ValueError("Invalid destination.")
        distance = distance_between(self._origin(player), destination)
        return travel_seconds(distance, player.agility_level)

    def start_travel(
        self, player: Player, destination_type: str, destination_id: int
    ) -> dict[str, Any]:
        now = utc_now()
        if player.is_traveling:
            raise ValueError("You are already traveling.")
        if player.in_infirmary_until is not None and player.in_infirmary_until > now:
            raise ValueError("You cannot travel while recovering in the infirmary.")
        if player.is_dead:
            raise ValueError("The dead do not travel.")
        if self.justice.is_jailed(player):
            raise ValueError("You cannot travel while in jail.")
        if not self.locations.exists(destination_type, destination_id):
            raise ValueError("Invalid destination.")
        if (
            player.current_location_type == destination_type
            and player.current_location_id == destination_id
        ):
            raise ValueError("You are already at this location.")
        if self.justice.is_exiled_from(player, destination_type, destination_id):
            raise ValueError("You have been exiled from that land.")
        if player.energy < ENERGY_COST:
            raise ValueError("Not enough energy to travel.")

        seconds = self.travel_time_to(player, destination_type, destination_id)
        arrives_at = now + timedelta(seconds=seconds)
        try:
            player.energy -= ENERGY_COST
            player.is_traveling = True
            player.travel_destination_type = destination_type
            player.travel_destination_id = destination_id
            player.travel_started_at = now
            player.travel_arrives_at = arrives_at
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        return {
            "destination": {
                "type": destination_type,
                "id": destination_id,
                "name": self.locations.name_of(destination_type, destination_id),
            },
            "travel_time_seconds": seconds,
            "started_at": now.isoformat(),
            "arrives_at": arrives_at.isoformat(),
        }

    def travel_status(self, player: Player, now: datetime | None = None) -> dict[str, Any] | None:
        if not player.is_traveling:
            return None
        now = now or utc_now()
        started = player.travel_started_at
        arrives = player.travel_arrives_at

        total = max(0, int((arrives - started).total_seconds()))
        elapsed = max(0, int((now - started).total_seconds()))
        remaining = max(0, int((arrives - now).total_seconds()))
        return {
            "is_traveling": True,
            "destination": {
                "type": player.travel_destination_type,
                "id": player.travel_destination_id,
                "name": self.locations.name_of(
                    player.travel_destination_type, player.travel_destination_id
                ),
            },
            "started_at": started.isoformat(),
            "arrives_at": arrives.isoformat(),
            "total_seconds": total,
            "elapsed_seconds": elapsed,
            "remaining_seconds": remaining,
            "progress_percent": min(100.0, elapsed / total * 100) if total > 0 else 100.0,
            "has_arrived": remaining <= 0,
        }

    def _clear(self, player: Player) -> None:
        player.is_traveling = False
        player.travel_destination_type = None
        player.travel_destination_id = None
        player.travel_started_at = None
        player.travel_arrives_at = None

    def _arrive(self, player: Player) -> dict[str, Any]:
        previous = {"type": player.current_location_type, "id": player.current_location_id}
        player.current_location_type = player.travel_destination_type
        player.current_location_id = player.travel_destination_id
        self._clear(player)
        logger.debug(
            "Player arrived",
            extra={
                "player_id": player.id,
                "location_type": player.current_location_type,
                "location_id": player.current_location_id,
            },
        )
        return {
            "arrived": True,
            "location": {
                "type": player.current_location_type,
                "id": player.current_location_id,
                "name": self.locations.name_of(
                    player.current_location_type, player.current_location_id
                ),
            },
            "previous_location": previous,
        }

    def check_arrival(self, player: Player, now: datetime | None = None) -> dict[str, Any] | None:
        """Complete the journey if the arrival time has passed."""
        now = now or utc_now()
        if not player.is_traveling or player.travel_arrives_at > now:
            return None
        try:
            result = self._arrive(player)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        return result

    def cancel_travel(self, player: Player) -> bool:
        """Abandon the journey where it started. Energy is not refunded."""
        if not player.is_traveling:
            return False
        self._clear(player)
        self.session.commit()
        return True

    def skip_travel(self, player: Player) -> dict[str, Any]:
        if not self.allow_dev_actions:
            raise ForbiddenError("Skipping travel is only available in development.")
        if not player.is_traveling:
            raise ValueError("You are not traveling.")
        try:
            result = self._arrive(player)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        return result

    def available_destinations(self, player: Player) -> list[dict[str, Any]]:
        """Locations within range, nearest first."""
        origin = self._origin(player)
        destinations = []
        for location_type, location in self.locations.all_locations():
            if (
                location_type == player.current_location_type
                and location.id == player.current_location_id
            ):
                continue
            distance = distance_between(
                origin, (float(location.coordinates_x), float(location.coordinates_y))
            )
            if distance > MAX_TRAVEL_DISTANCE:
                continue
            seconds = travel_seconds(distance, player.agility_level)
            destinations.append(
                {
                    "type": location_type,
                    "id": location.id,
                    "name": location.name,
                    "distance": round(distance, 1),
                    "travel_seconds": seconds,
                    "travel_minutes": round(seconds / 60, 1),
                }
            )
        destinations.sort(key=lambda d: (d["distance"], d["type"], d["id"]))
        return destinations

    def process_arrivals(self, now: datetime | None = None) -> int:
        """Complete every journey whose arrival time has passed."""
        now = now or utc_now()
        arriving = (
            self.session.query(Player)
            .filter(Player.is_traveling.is_(True), Player.travel_arrives_at <= now)
            .all()
        )
        try:
            for player in arriving:
                self._arrive(player)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        return len(arriving)
