"""HTTP routes for religion headquarters."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter

from myrefell.api.deps import CurrentPlayer, DbSession, checked
from myrefell.factory import create_religion_hq_service
from myrefell.schemas import DonationCreate, FeatureBuild, ProjectContribution, TreasuryFunding

router = APIRouter(prefix="/religions/{religion_id}/headquarters", tags=["religion"])


@router.get("")
def hq_overview(religion_id: int, db: DbSession) -> dict[str, Any]:
    return create_religion_hq_service(db).hq_overview(religion_id)


@router.get("/treasury")
def treasury(religion_id: int, db: DbSession) -> dict[str, Any]:
    return create_religion_hq_service(db).treasury_info(religion_id)


@router.post("/donate")
def donate(
    religion_id: int, request: DonationCreate, player: CurrentPlayer, db: DbSession
) -> dict[str, Any]:
    return checked(create_religion_hq_service(db).donate(player, religion_id, request.amount))


@router.post("/build")
def build(religion_id: int, player: CurrentPlayer, db: DbSession) -> dict[str, Any]:
    return checked(create_religion_hq_service(db).build(player, religion_id))


@router.post("/upgrade")
def start_hq_upgrade(religion_id: int, player: CurrentPlayer, db: DbSession) -> dict[str, Any]:
    return checked(create_religion_hq_service(db).start_hq_upgrade(player, religion_id))


@router.post("/features")
def start_feature_build(
    religion_id: int, request: FeatureBuild, player: CurrentPlayer, db: DbSession
) -> dict[str, Any]:
    return checked(
        create_religion_hq_service(db).start_feature_build(player, religion_id, request.feature)
    )


@router.post("/features/{slug}/upgrade")
def start_feature_upgrade(
    religion_id: int, slug: str, player: CurrentPlayer, db: DbSession
) -> dict[str, Any]:
    return checked(create_religion_hq_service(db).start_feature_upgrade(player, religion_id, slug))


@router.post("/features/{slug}/pray")
def pray_at_feature(
    religion_id: int, slug: str, player: CurrentPlayer, db: DbSession
) -> dict[str, Any]:
    return checked(create_religion_hq_service(db).pray_at_feature(player, religion_id, slug))


@router.post("/projects/{project_id}/contribute")
def contribute(
    religion_id: int,
    project_id: int,
    request: ProjectContribution,
    player: CurrentPlayer,
    db: DbSession,
) -> dict[str, Any]:
    service = create_religion_hq_service(db)
    service.get_project(project_id, religion_id)
    return checked(
        service.contribute(player, project_id, request.gold, request.devotion, request.items)
    )


@router.post("/projects/{project_id}/fund")
def fund_from_treasury(
    religion_id: int,
    project_id: int,
    request: TreasuryFunding,
    player: CurrentPlayer,
    db: DbSession,
) -> dict[str, Any]:
    service = create_religion_hq_service(db)
    service.get_project(project_id, religion_id)
    return checked(service.fund_from_treasury(player, project_id, request.amount))


@router.post("/projects/{project_id}/complete")
def complete_project(
    religion_id: int, project_id: int, player: CurrentPlayer, db: DbSession
) -> dict[str, Any]:
    service = create_religion_hq_service(db)
    service.get_project(project_id, religion_id)
    return checked(service.complete_project(project_id))


@router.post("/projects/{project_id}/cancel")
def cancel_project(
    religion_id: int, project_id: int, player: CurrentPlayer, db: DbSession
) -> dict[str, Any]:
    service = create_religion_hq_service(db)
    service.get_project(project_id, religion_id)
    return checked(service.cancel_project(player, project_id))
