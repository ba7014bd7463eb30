"""Inventory Service for Myrefell.

A player's inventory is a fixed grid of ``MAX_SLOTS`` slots numbered from 0.
Each occupied slot is one ``PlayerInventory`` row; stackable items share a
slot up to the item's ``max_stack``.
"""

from typing import Any

from sqlalchemy.orm import Session

from myrefell.domain import rules
from myrefell.domain.enums import EquipmentSlot
from myrefell.models import Item, Player, PlayerInventory

MAX_SLOTS = rules.MAX_INVENTORY_SLOTS

BONUS_FIELDS = ("atk_bonus", "str_bonus", "def_bonus", "hp_bonus", "energy_bonus")


class InventoryService:
    """Service for slot management, equipment and item bookkeeping."""

    def __init__(self, session: Session):
        self.session = session

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def _slots(self, player: Player) -> list[PlayerInventory]:
        return (
            self.session.query(PlayerInventory)
            .filter(PlayerInventory.player_id == player.id)
            .order_by(PlayerInventory.slot_number)
            .all()
        )

    def get_slot(self, player: Player, slot_number: int) -> PlayerInventory | None:
        return (
            self.session.query(PlayerInventory)
            .filter(
                PlayerInventory.player_id == player.id,
                PlayerInventory.slot_number == slot_number,
            )
            .first()
        )

    def find_empty_slot(self, player: Player) -> int | None:
        """Return the lowest free slot number, or None if the inventory is full."""
        used = {slot.slot_number for slot in self._slots(player)}
        for slot_number in range(MAX_SLOTS):
            if slot_number not in used:
                return slot_number
        return None

    def free_slots(self, player: Player) -> int:
        return MAX_SLOTS - len(self._slots(player))

    def count_item(self, player: Player, item: Item) -> int:
        return sum(
            slot.quantity
            for slot in self._slots(player)
            if slot.item_id == item.id and not slot.is_equipped
        )

    def has_item(self, player: Player, item: Item, quantity: int = 1) -> bool:
        return self.count_item(player, item) >= quantity

    # ------------------------------------------------------------------
    # Bookkeeping helpers (flush, caller commits)
    # ------------------------------------------------------------------

    def add_item(self, player: Player, item: Item, quantity: int = 1) -> bool:
        """Add ``quantity`` of ``item``, filling partial stacks before empty slots.

        Returns:
            False if the inventory ran out of room. Units placed before running
            out stay placed; callers that need all-or-nothing roll back.
        """
        if quantity <= 0:
            raise ValueError("Quantity must be positive.")

        if item.stackable:
            for slot in self._slots(player):
                if quantity <= 0:
                    break
                if slot.item_id != item.id or slot.is_equipped:
                    continue
                room = item.max_stack - slot.quantity
                if room <= 0:
                    continue
                added = min(room, quantity)
                slot.quantity += added
                quantity -= added

        while quantity > 0:
            slot_number = self.find_empty_slot(player)
            if slot_number is None:
                self.session.flush()
                return False

            added = min(quantity, item.max_stack) if item.stackable else 1
            self.session.add(
                PlayerInventory(
                    player_id=player.id,
                    item_id=item.id,
                    slot_number=slot_number,
                    quantity=added,
                    is_equipped=False,
                )
            )
            self.session.flush()
            quantity -= added

        self.session.flush()
        return True

    def remove_item(self, player: Player, item: Item, quantity: int = 1) -> bool:
        """Remove ``quantity`` of ``item`` from non-equipped slots, smallest stacks first.

        Returns:
            False (and removes nothing) if the player holds fewer than ``quantity``.
        """
        if quantity <= 0:
            raise ValueError("Quantity must be positive.")
        if not self.has_item(player, item, quantity):
            return False

        slots = sorted(
            (s for s in self._slots(player) if s.item_id == item.id and not s.is_equipped),
            key=lambda s: (s.quantity, s.slot_number),
        )
        remaining = quantity
        for slot in slots:
            if remaining <= 0:
                break
            if slot.quantity <= remaining:
                remaining -= slot.quantity
                self.session.delete(slot)
            else:
                slot.quantity -= remaining
                remaining = 0

        self.session.flush()
        return True

    # ------------------------------------------------------------------
    # Player actions
    # ------------------------------------------------------------------

    @staticmethod
    def _check_slot(slot_number: int) -> None:
        if slot_number < 0 or slot_number >= MAX_SLOTS:
            raise ValueError(f"Slot must be between 0 and {MAX_SLOTS - 1}.")

    def move(self, player: Player, from_slot: int, to_slot: int) -> dict[str, Any]:
        """Move the item in ``from_slot`` to ``to_slot``, swapping if occupied."""
        self._check_slot(from_slot)
        self._check_slot(to_slot)

        if from_slot == to_slot:
            return {"moved": False, "swapped": False}

        source = self.get_slot(player, from_slot)
        if source is None:
            return {"moved": False, "swapped": False}

        target = self.get_slot(player, to_slot)
        try:
            if target is None:
                source.slot_number = to_slot
            else:
                # Park the source outside the grid so the unique slot index holds.
                source.slot_number = -1
                self.session.flush()
                target.slot_number = from_slot
                self.session.flush()
                source.slot_number = to_slot
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        return {"moved": True, "swapped": target is not None}

    def drop(self, player: Player, slot_number: int, quantity: int | None = None) -> dict[str, Any]:
        """Destroy some or all of the stack in a slot."""
        self._check_slot(slot_number)
        slot = self.get_slot(player, slot_number)
        if slot is None:
            raise ValueError("No item in that slot.")
        if quantity is not None and quantity < 1:
            raise ValueError("Quantity must be at least 1.")

        name = slot.item.name
        if quantity is None or quantity >= slot.quantity:
            dropped = slot.quantity
            self.session.delete(slot)
        else:
            dropped = quantity
            slot.quantity -= quantity
        self.session.commit()

        return {"item": name, "dropped": dropped}

    def equip(self, player: Player, slot_number: int) -> dict[str, Any]:
        self._check_slot(slot_number)
        slot = self.get_slot(player, slot_number)
        if slot is None or not slot.item.equipment_slot:
            raise ValueError("Cannot equip this item.")

        item = slot.item
        if item.required_level:
            skill = item.required_skill or ("attack" if item.type == "weapon" else "defense")
            if player.skill_level(skill) < item.required_level:
                raise ValueError(
                    f"You need {item.required_level} {skill.capitalize()} to equip this item."
                )

        for other in self._slots(player):
            if (
                other.id != slot.id
                and other.is_equipped
                and other.item.equipment_slot == item.equipment_slot
            ):
                other.is_equipped = False

        slot.is_equipped = True
        self.session.commit()
        return {"item": item.name, "equipment_slot": item.equipment_slot}

    def unequip(self, player: Player, slot_number: int) -> dict[str, Any]:
        self._check_slot(slot_number)
        slot = self.get_slot(player, slot_number)
        if slot is None or not slot.is_equipped:
            raise ValueError("Item is not equipped.")

        slot.is_equipped = False
        self.session.commit()
        return {"item": slot.item.name}

    # ------------------------------------------------------------------
    # View
    # ------------------------------------------------------------------

    def inventory_view(self, player: Player) -> dict[str, Any]:
        """Full grid, equipped items by body slot and summed combat bonuses."""
        grid: list[dict[str, Any] | None] = [None] * MAX_SLOTS
        equipment: dict[str, dict[str, Any] | None] = {slot.value: None for slot in EquipmentSlot}
        bonuses = {field: 0 for field in BONUS_FIELDS}

        for slot in self._slots(player):
            if not 0 <= slot.slot_number < MAX_SLOTS:
                continue
            entry = {
                "slot": slot.slot_number,
                "item_id": slot.item_id,
                "name": slot.item.name,
                "type": slot.item.type,
                "quantity": slot.quantity,
                "is_equipped": slot.is_equipped,
                "equipment_slot": slot.item.equipment_slot,
            }
            grid[slot.slot_number] = entry
            if slot.is_equipped and slot.item.equipment_slot:
                equipment[slot.item.equipment_slot] = entry
                for field in BONUS_FIELDS:
                    bonuses[field] += getattr(slot.item, field) or 0

        return {
            "max_slots": MAX_SLOTS,
            "free_slots": sum(1 for entry in grid if entry is None),
            "slots": grid,
            "equipment": equipment,
            "bonuses": bonuses,
        }
