"""HTTP routes for festivals and tournaments."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Query

from myrefell.api.deps import CurrentPlayer, DbSession
from myrefell.factory import create_festival_service, create_tournament_service
from myrefell.schemas import CompetitorRead, FestivalJoin, FestivalRead, ParticipantRead

router = APIRouter(prefix="/events", tags=["events"])


@router.get("/festivals", response_model=list[FestivalRead])
def upcoming_festivals(
    db: DbSession,
    location_type: str | None = Query(default=None),
    location_id: int | None = Query(default=None),
):
    return create_festival_service(db).upcoming_festivals(location_type, location_id)


@router.get("/festivals/{festival_id}", response_model=FestivalRead)
def get_festival(festival_id: int, db: DbSession):
    return create_festival_service(db).get_festival(festival_id)


@router.post("/festivals/{festival_id}/join", response_model=ParticipantRead)
def join_festival(
    festival_id: int,
    player: CurrentPlayer,
    db: DbSession,
    request: FestivalJoin | None = None,
):
    role = request.role if request is not None else "attendee"
    return create_festival_service(db).join_festival(player, festival_id, role)


@router.post("/festivals/{festival_id}/leave")
def leave_festival(festival_id: int, player: CurrentPlayer, db: DbSession) -> dict[str, Any]:
    create_festival_service(db).leave_festival(player, festival_id)
    return {"success": True, "message": "You have left the festival."}


@router.get("/tournaments")
def open_tournaments(db: DbSession) -> dict[str, Any]:
    return create_tournament_service(db).open_tournaments()


@router.get("/tournaments/{tournament_id}")
def tournament_bracket(tournament_id: int, db: DbSession) -> dict[str, Any]:
    return create_tournament_service(db).bracket(tournament_id)


@router.post("/tournaments/{tournament_id}/register", response_model=CompetitorRead)
def register(tournament_id: int, player: CurrentPlayer, db: DbSession):
    return create_tournament_service(db).register(player, tournament_id)


@router.post("/tournaments/{tournament_id}/withdraw", response_model=CompetitorRead)
def withdraw(tournament_id: int, player: CurrentPlayer, db: DbSession):
    return create_tournament_service(db).withdraw(player, tournament_id)


@router.post("/tournaments/{tournament_id}/start")
def start_tournament(tournament_id: int, player: CurrentPlayer, db: DbSession) -> dict[str, Any]:
    tournaments = create_tournament_service(db)
    tournaments.require_manager(player, tournaments.get_tournament(tournament_id))
    return tournaments.start_tournament(tournament_id)


@router.post("/matches/{match_id}/resolve")
def resolve_match(match_id: int, player: CurrentPlayer, db: DbSession) -> dict[str, Any]:
    tournaments = create_tournament_service(db)
    tournaments.require_manager(player, tournaments.get_match(match_id).tournament)
    return tournaments.resolve_match(match_id)


@router.post("/tournaments/{tournament_id}/advance")
def advance_tournament(
    tournament_id: int, player: CurrentPlayer, db: DbSession
) -> dict[str, Any]:
    tournaments = create_tournament_service(db)
    tournaments.require_manager(player, tournaments.get_tournament(tournament_id))
    return tournaments.advance_tournament(tournament_id)
