"""Location lookups shared by the other services.

Locations are addressed everywhere by a ``(location_type, location_id)``
pair. This service resolves such pairs to world models and walks the
village/town -> barony -> kingdom hierarchy.
"""

import math

from sqlalchemy.orm import Session

from myrefell.domain.enums import LocationType
from myrefell.models import Barony, Kingdom, Town, Village
from myrefell.services.errors import NotFoundError

LOCATION_MODELS: dict[str, type] = {
    LocationType.VILLAGE: Village,
    LocationType.TOWN: Town,
    LocationType.BARONY: Barony,
    LocationType.KINGDOM: Kingdom,
}


def distance_between(a: tuple[float, float], b: tuple[float, float]) -> float:
    """Euclidean distance between two map coordinates."""
    return math.hypot(b[0] - a[0], b[1] - a[1])


class LocationService:
    """Resolve and relate world locations."""

    def __init__(self, session: Session):
        self.session = session

    def get(self, location_type: str | None, location_id: int | None):
        """Return the model for a location, or None (wilderness has no record)."""
        model = LOCATION_MODELS.get(location_type or "")
        if model is None or location_id is None:
            return None
        return self.session.get(model, location_id)

    def require(self, location_type: str, location_id: int):
        location = self.get(location_type, location_id)
        if location is None:
            raise NotFoundError(f"Unknown {location_type} {location_id}.")
        return location

    def exists(self, location_type: str, location_id: int | None) -> bool:
        if location_type == LocationType.WILDERNESS:
            return True
        return self.get(location_type, location_id) is not None

    def name_of(self, location_type: str | None, location_id: int | None) -> str:
        if location_type == LocationType.WILDERNESS:
            return "the Wilderness"
        location = self.get(location_type, location_id)
        return location.name if location is not None else "Unknown"

    def coordinates(
        self, location_type: str | None, location_id: int | None
    ) -> tuple[float, float] | None:
        """Return ``(x, y)`` for a location; wilderness sits at the origin."""
        if location_type == LocationType.WILDERNESS:
            return (0.0, 0.0)
        location = self.get(location_type, location_id)
        if location is None:
            return None
        return (float(location.coordinates_x), float(location.coordinates_y))

    def barony_of(self, location_type: str | None, location_id: int | None) -> Barony | None:
        """Return the barony a location belongs to (a barony is its own)."""
        location = self.get(location_type, location_id)
        if location is None:
            return None
        if isinstance(location, Barony):
            return location
        if isinstance(location, (Village, Town)):
            return location.barony
        return None

    def kingdom_of(self, location_type: str | None, location_id: int | None) -> Kingdom | None:
        location = self.get(location_type, location_id)
        if isinstance(location, Kingdom):
            return location
        barony = self.barony_of(location_type, location_id)
        return barony.kingdom if barony is not None else None

    def is_within(
        self,
        outer_type: str,
        outer_id: int,
        location_type: str | None,
        location_id: int | None,
    ) -> bool:
        """True when the location is the outer location or lies inside it."""
        if location_type == outer_type and location_id == outer_id:
            return True
        if outer_type == LocationType.BARONY:
            barony = self.barony_of(location_type, location_id)
            return barony is not None and barony.id == outer_id
        if outer_type == LocationType.KINGDOM:
            kingdom = self.kingdom_of(location_type, location_id)
            return kingdom is not None and kingdom.id == outer_id
        return False

    def all_locations(self) -> list[tuple[str, object]]:
        """Every governed location as ``(location_type, model)`` pairs."""
        result: list[tuple[str, object]] = []
        for location_type, model in LOCATION_MODELS.items():
            for location in self.session.query(model).order_by(model.id).all():
                result.append((str(location_type), location))
        return result
