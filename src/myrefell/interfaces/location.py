"""Location Service Protocol Interface."""

from typing import Any, Protocol

from myrefell.models import Barony, Kingdom


class ILocationService(Protocol):
    """Protocol for resolving ``(location_type, location_id)`` pairs."""

    def get(self, location_type: str | None, location_id: int | None) -> Any:
        """Return the location model, or None when it does not exist."""
        ...

    def require(self, location_type: str, location_id: int) -> Any:
        """Return the location model.

        Raises:
            NotFoundError: If the location does not exist
        """
        ...

    def exists(self, location_type: str, location_id: int | None) -> bool: ...

    def name_of(self, location_type: str | None, location_id: int | None) -> str: ...

    def coordinates(
        self, location_type: str | None, location_id: int | None
    ) -> tuple[float, float] | None: ...

    def barony_of(self, location_type: str | None, location_id: int | None) -> Barony | None: ...

    def kingdom_of(
        self, location_type: str | None, location_id: int | None
    ) -> Kingdom | None: ...

    def is_within(
        self,
        outer_type: str,
        outer_id: int,
        location_type: str | None,
        location_id: int | None,
    ) -> bool: ...

    def all_locations(self) -> list[tuple[str, Any]]: ...
