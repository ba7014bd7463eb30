"""Shared FastAPI dependencies for the Myrefell routers."""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.orm import Session

from myrefell.api.runtime import ApiState
from myrefell.database import get_db
from myrefell.models import Player

UNPROCESSABLE = 422

DbSession = Annotated[Session, Depends(get_db)]


def get_state(request: Request) -> ApiState:
    state = getattr(request.app.state, "api_state", None)
    if state is None:  # pragma: no cover - FastAPI should always initialise state
        raise RuntimeError("API state not initialised")
    return state


ApiStateDep = Annotated[ApiState, Depends(get_state)]


def current_player(
    db: DbSession,
    x_player_id: Annotated[str | None, Header()] = None,
) -> Player:
    """Resolve the acting player from the ``X-Player-Id`` header."""
    if x_player_id is None or not x_player_id.strip().isdigit():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    player = db.get(Player, int(x_player_id))
    if player is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unknown player")
    return player


CurrentPlayer = Annotated[Player, Depends(current_player)]


def admin_player(player: CurrentPlayer) -> Player:
    if not player.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admins only")
    return player


AdminPlayer = Annotated[Player, Depends(admin_player)]


def checked(result: dict[str, Any]) -> dict[str, Any]:
    """Turn a failed service result into a 422 response."""
    if not result.get("success", True):
        raise HTTPException(status_code=UNPROCESSABLE, detail=result["message"])
    return result
