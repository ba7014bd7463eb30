"""Item catalog and inventory models for the Myrefell game system."""

from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin

if TYPE_CHECKING:
    from .player import Player


class Item(Base, TimestampMixin):
    """Catalog entry for anything a player can carry.

    Attributes:
        id: Primary key
        name: Unique display name
        type: weapon/armor/resource/consumable/tool/misc
        stackable: Whether several units share one slot
        max_stack: Units per slot when stackable
        equipment_slot: Body slot the item occupies when equipped, if any
        atk_bonus, str_bonus, def_bonus, hp_bonus, energy_bonus: Stat modifiers
        required_level: Level needed to equip
        required_skill: Skill checked against required_level
    """

    __tablename__ = "items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    subtype: Mapped[str | None] = mapped_column(String(30), nullable=True)
    rarity: Mapped[str] = mapped_column(String(20), nullable=False, default="common")
    stackable: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    max_stack: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    equipment_slot: Mapped[str | None] = mapped_column(String(20), nullable=True)
    atk_bonus: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    str_bonus: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    def_bonus: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    hp_bonus: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    energy_bonus: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    base_value: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    required_level: Mapped[int | None] = mapped_column(Integer, nullable=True)
    required_skill: Mapped[str | None] = mapped_column(String(30), nullable=True)

    __table_args__ = (CheckConstraint("max_stack >= 1", name="ck_items_max_stack"),)

    def __repr__(self) -> str:
        return f"<Item(id={self.id}, name='{self.name}', type='{self.type}')>"


class PlayerInventory(Base, TimestampMixin):
    """One occupied inventory slot."""

    __tablename__ = "player_inventory"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    player_id: Mapped[int] = mapped_column(Integer, ForeignKey("players.id"), nullable=False)
    item_id: Mapped[int] = mapped_column(Integer, ForeignKey("items.id"), nullable=False)
    slot_number: Mapped[int] = mapped_column(Integer, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    is_equipped: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    player: Mapped["Player"] = relationship("Player", back_populates="inventory")
    item: Mapped["Item"] = relationship("Item")

    __table_args__ = (
        UniqueConstraint("player_id", "slot_number", name="uq_player_inventory_slot"),
        CheckConstraint("quantity >= 1", name="ck_player_inventory_quantity"),
    )

    def __repr__(self) -> str:
        return (
            f"<PlayerInventory(player_id={self.player_id}, slot={self.slot_number}, "
            f"item_id={self.item_id}, quantity={self.quantity})>"
        )
