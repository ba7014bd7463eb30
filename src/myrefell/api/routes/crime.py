"""HTTP routes for accusations, trials, bounties and pardons."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Query, status

from myrefell.api.deps import CurrentPlayer, DbSession
from myrefell.factory import create_crime_service, create_trial_service
from myrefell.schemas import (
    AccusationCreate,
    AccusationRead,
    AccusationReview,
    BountyCreate,
    BountyRead,
    CrimeTypeRead,
    DefenseSubmit,
    PardonRequest,
    PunishmentRead,
    TrialRead,
    VerdictCreate,
)

router = APIRouter(prefix="/crime", tags=["crime"])


@router.get("")
def crime_status(player: CurrentPlayer, db: DbSession) -> dict[str, Any]:
    return create_crime_service(db).player_status(player)


@router.get("/types", response_model=list[CrimeTypeRead])
def crime_types(db: DbSession):
    return create_crime_service(db).crime_types()


@router.post("/accuse", response_model=AccusationRead, status_code=status.HTTP_201_CREATED)
def file_accusation(request: AccusationCreate, player: CurrentPlayer, db: DbSession):
    return create_crime_service(db).file_accusation(
        player,
        request.accused_id,
        request.crime_type,
        request.accusation_text,
        request.evidence,
        request.crime_id,
    )


@router.get("/accusations/pending", response_model=list[AccusationRead])
def pending_accusations(player: CurrentPlayer, db: DbSession):
    return create_crime_service(db).pending_accusations_for(player)


@router.post("/accusations/{accusation_id}/review")
def review_accusation(
    accusation_id: int, request: AccusationReview, player: CurrentPlayer, db: DbSession
) -> dict[str, Any]:
    return create_crime_service(db).review_accusation(
        player, accusation_id, request.decision, request.notes
    )


@router.post("/accusations/{accusation_id}/withdraw", response_model=AccusationRead)
def withdraw_accusation(accusation_id: int, player: CurrentPlayer, db: DbSession):
    return create_crime_service(db).withdraw_accusation(player, accusation_id)


@router.get("/trials/pending", response_model=list[TrialRead])
def pending_trials(player: CurrentPlayer, db: DbSession):
    return create_trial_service(db).pending_trials_for_judge(player)


@router.get("/trials/{trial_id}", response_model=TrialRead)
def get_trial(trial_id: int, player: CurrentPlayer, db: DbSession):
    return create_trial_service(db).get_trial(trial_id)


@router.post("/trials/{trial_id}/defense", response_model=TrialRead)
def submit_defense(trial_id: int, request: DefenseSubmit, player: CurrentPlayer, db: DbSession):
    return create_trial_service(db).submit_defense(player, trial_id, request.argument)


@router.post("/trials/{trial_id}/verdict", response_model=TrialRead)
def render_verdict(trial_id: int, request: VerdictCreate, player: CurrentPlayer, db: DbSession):
    punishments = [p.model_dump(mode="json", exclude_none=True) for p in request.punishments]
    return create_trial_service(db).render_verdict(
        player, trial_id, request.verdict, request.reasoning, punishments
    )


@router.post("/trials/{trial_id}/appeal", response_model=TrialRead)
def appeal_verdict(trial_id: int, player: CurrentPlayer, db: DbSession):
    return create_trial_service(db).appeal_verdict(player, trial_id)


@router.post("/bounties", response_model=BountyRead, status_code=status.HTTP_201_CREATED)
def post_bounty(request: BountyCreate, player: CurrentPlayer, db: DbSession):
    return create_crime_service(db).post_bounty(
        player,
        request.target_id,
        request.reward_amount,
        request.capture_type,
        request.reason,
    )


@router.get("/bounties", response_model=list[BountyRead])
def list_bounties(db: DbSession, target_id: int | None = Query(default=None)):
    return create_crime_service(db).active_bounties(target_id)


@router.post("/bounties/{bounty_id}/claim", response_model=BountyRead)
def claim_bounty(bounty_id: int, player: CurrentPlayer, db: DbSession):
    return create_crime_service(db).claim_bounty(player, bounty_id)


@router.post("/bounties/{bounty_id}/cancel", response_model=BountyRead)
def cancel_bounty(bounty_id: int, player: CurrentPlayer, db: DbSession):
    return create_crime_service(db).cancel_bounty(player, bounty_id)


@router.post("/punishments/{punishment_id}/pardon", response_model=PunishmentRead)
def pardon(
    punishment_id: int,
    player: CurrentPlayer,
    db: DbSession,
    request: PardonRequest | None = None,
):
    notes = request.notes if request is not None else None
    return create_crime_service(db).pardon(player, punishment_id, notes)
