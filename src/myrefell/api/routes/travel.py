"""HTTP routes for travel between locations."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter

from myrefell.api.deps import CurrentPlayer, DbSession
from myrefell.factory import create_travel_service
from myrefell.schemas import TravelStart

router = APIRouter(prefix="/travel", tags=["travel"])


@router.get("/status")
def travel_status(player: CurrentPlayer, db: DbSession) -> dict[str, Any]:
    """Current journey; completes the arrival when it is due."""
    travel = create_travel_service(db)
    arrival = travel.check_arrival(player)
    if arrival is not None:
        return {"is_traveling": False, "arrival": arrival}
    status = travel.travel_status(player)
    if status is None:
        return {
            "is_traveling": False,
            "location": {
                "type": player.current_location_type,
                "id": player.current_location_id,
            },
        }
    return status


@router.get("/destinations")
def destinations(player: CurrentPlayer, db: DbSession) -> list[dict[str, Any]]:
    return create_travel_service(db).available_destinations(player)


@router.post("/start")
def start_travel(request: TravelStart, player: CurrentPlayer, db: DbSession) -> dict[str, Any]:
    return create_travel_service(db).start_travel(
        player, request.destination_type, request.destination_id
    )


@router.post("/cancel")
def cancel_travel(player: CurrentPlayer, db: DbSession) -> dict[str, Any]:
    if not create_travel_service(db).cancel_travel(player):
        return {"success": False, "message": "You are not traveling."}
    return {"success": True, "message": "You turn back."}


@router.post("/arrive")
def arrive(player: CurrentPlayer, db: DbSession) -> dict[str, Any]:
    arrival = create_travel_service(db).check_arrival(player)
    if arrival is None:
        return {"arrived": False}
    return arrival


@router.post("/skip")
def skip_travel(player: CurrentPlayer, db: DbSession) -> dict[str, Any]:
    return create_travel_service(db).skip_travel(player)
