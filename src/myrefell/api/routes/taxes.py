"""HTTP routes for tax rates and treasuries."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Query

from myrefell.api.deps import CurrentPlayer, DbSession, checked
from myrefell.factory import create_tax_service
from myrefell.schemas import TaxRateUpdate

router = APIRouter(prefix="/taxes", tags=["taxes"])


@router.post("/set-rate")
def set_tax_rate(request: TaxRateUpdate, player: CurrentPlayer, db: DbSession) -> dict[str, Any]:
    return checked(
        create_tax_service(db).set_tax_rate(
            request.location_type, request.location_id, request.tax_rate, player
        )
    )


@router.get("/treasury/{location_type}/{location_id}")
def treasury_status(
    location_type: str,
    location_id: int,
    db: DbSession,
    limit: int = Query(default=20, ge=1, le=100),
) -> dict[str, Any]:
    return create_tax_service(db).treasury_status(location_type, location_id, limit)


@router.get("/mine")
def my_taxes(player: CurrentPlayer, db: DbSession) -> dict[str, Any]:
    taxes = create_tax_service(db)
    return {
        "taxes_paid": taxes.player_tax_history(player),
        "salaries_received": taxes.player_salary_history(player),
        "home_tax_rate": taxes.get_tax_rate(player.home_location_type, player.home_location_id),
    }
