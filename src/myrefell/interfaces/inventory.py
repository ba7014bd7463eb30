"""Inventory Service Protocol Interface."""

from typing import Protocol

from myrefell.models import Item, Player


class IInventoryService(Protocol):
    """Protocol for adding, removing and counting a player's items."""

    def add_item(self, player: Player, item: Item, quantity: int = 1) -> bool:
        """Add items, stacking first. Returns False if they do not fit."""
        ...

    def remove_item(self, player: Player, item: Item, quantity: int = 1) -> bool:
        """Remove non-equipped items. Returns False if the player holds too few."""
        ...

    def has_item(self, player: Player, item: Item, quantity: int = 1) -> bool: ...

    def count_item(self, player: Player, item: Item) -> int: ...
