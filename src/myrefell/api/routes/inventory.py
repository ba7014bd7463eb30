"""HTTP routes for the player's inventory."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter

from myrefell.api.deps import CurrentPlayer, DbSession
from myrefell.factory import create_inventory_service
from myrefell.schemas import SlotAction, SlotDrop, SlotMove

router = APIRouter(prefix="/inventory", tags=["inventory"])


@router.get("")
def inventory_view(player: CurrentPlayer, db: DbSession) -> dict[str, Any]:
    return create_inventory_service(db).inventory_view(player)


@router.post("/move")
def move(request: SlotMove, player: CurrentPlayer, db: DbSession) -> dict[str, Any]:
    return create_inventory_service(db).move(player, request.from_slot, request.to_slot)


@router.post("/drop")
def drop(request: SlotDrop, player: CurrentPlayer, db: DbSession) -> dict[str, Any]:
    return create_inventory_service(db).drop(player, request.slot, request.quantity)


@router.post("/equip")
def equip(request: SlotAction, player: CurrentPlayer, db: DbSession) -> dict[str, Any]:
    return create_inventory_service(db).equip(player, request.slot)


@router.post("/unequip")
def unequip(request: SlotAction, player: CurrentPlayer, db: DbSession) -> dict[str, Any]:
    return create_inventory_service(db).unequip(player, request.slot)
