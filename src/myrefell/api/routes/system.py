"""Health and world tick administration routes."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, Field

from myrefell.api.deps import AdminPlayer, ApiStateDep
from myrefell.database import check_database_health

router = APIRouter()

API_VERSION = "1.0.0"


class TickAdvanceRequest(BaseModel):
    ticks: int = Field(default=1, ge=1, le=30)


class TickScheduleRequest(BaseModel):
    enabled: bool
    interval_seconds: float | None = Field(default=None, gt=0.0)
    debug_multiplier: float | None = Field(default=None, gt=0.0)


class TickStatusResponse(BaseModel):
    enabled: bool
    interval_seconds: float
    debug_multiplier: float
    effective_interval_seconds: float


@router.get("/")
def root() -> dict[str, str]:
    return {"name": "Myrefell", "version": API_VERSION, "docs": "/docs", "health": "/health"}


@router.get("/health")
def health(state: ApiStateDep) -> dict[str, object]:
    healthy = check_database_health()
    return {
        "status": "healthy" if healthy else "degraded",
        "database": "connected" if healthy else "unavailable",
        "version": API_VERSION,
        "environment": state.settings.environment,
    }


@router.post("/admin/tick/advance")
async def advance_tick(
    request: TickAdvanceRequest, state: ApiStateDep, admin: AdminPlayer
) -> dict[str, Any]:
    summary = await state.ticks.advance_now(request.ticks)
    if summary is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="world tick failed"
        )
    return summary


def _tick_status(state) -> TickStatusResponse:
    return TickStatusResponse(
        enabled=state.ticks.enabled,
        interval_seconds=state.ticks.base_interval_seconds,
        debug_multiplier=state.ticks.debug_multiplier,
        effective_interval_seconds=state.ticks.interval_seconds,
    )


@router.get("/admin/tick/schedule", response_model=TickStatusResponse)
async def get_tick_schedule(state: ApiStateDep, admin: AdminPlayer) -> TickStatusResponse:
    return _tick_status(state)


@router.post("/admin/tick/schedule", response_model=TickStatusResponse)
async def update_tick_schedule(
    request: TickScheduleRequest, state: ApiStateDep, admin: AdminPlayer
) -> TickStatusResponse:
    if request.interval_seconds is not None:
        state.ticks.set_base_interval(request.interval_seconds)
    if request.debug_multiplier is not None:
        state.ticks.set_debug_multiplier(request.debug_multiplier)
    await state.ticks.set_enabled(request.enabled)
    return _tick_status(state)
