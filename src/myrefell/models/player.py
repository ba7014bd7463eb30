"""Player and role models for the Myrefell game system.

This module contains the player (a user's character) together with the
titled roles players can hold at a location, such as baron or village elder.
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    JSON,
    Boolean,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin

if TYPE_CHECKING:
    from .item import PlayerInventory


class Player(Base, TimestampMixin):
    """Represents a player character.

    Attributes:
        id: Primary key
        username: Unique username
        gold: Coins carried
        hp, max_hp: Current and maximum hitpoints
        energy, max_energy: Current and maximum energy
        attack_level, strength_level, defense_level, hitpoints_level,
        prayer_level, agility_level: Skill levels
        combat_level: Derived combat level used by tournaments
        is_admin: Whether the player has administrative powers
        is_dead: Set by execution
        current_location_type/current_location_id: Where the player stands
        home_location_type/home_location_id: Where the player pays taxes
        is_traveling: Whether a journey is in progress
        travel_destination_type/travel_destination_id: Journey target
        travel_started_at/travel_arrives_at: Journey timestamps
        in_infirmary_until: Recovery timer blocking travel
    """

    __tablename__ = "players"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    username: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)

    # Resources
    gold: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    hp: Mapped[int] = mapped_column(Integer, nullable=False, default=10)
    max_hp: Mapped[int] = mapped_column(Integer, nullable=False, default=10)
    energy: Mapped[int] = mapped_column(Integer, nullable=False, default=100)
    max_energy: Mapped[int] = mapped_column(Integer, nullable=False, default=100)

    # Skills
    attack_level: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    strength_level: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    defense_level: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    hitpoints_level: Mapped[int] = mapped_column(Integer, nullable=False, default=10)
    prayer_level: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    agility_level: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    combat_level: Mapped[int] = mapped_column(Integer, nullable=False, default=3)

    is_admin: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_dead: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Location
    current_location_type: Mapped[str | None] = mapped_column(String(20), nullable=True)
    current_location_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    home_location_type: Mapped[str | None] = mapped_column(String(20), nullable=True)
    home_location_id: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # Travel
    is_traveling: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    travel_destination_type: Mapped[str | None] = mapped_column(String(20), nullable=True)
    travel_destination_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    travel_started_at: Mapped[datetime | None] = mapped_column(nullable=True)
    travel_arrives_at: Mapped[datetime | None] = mapped_column(nullable=True)
    in_infirmary_until: Mapped[datetime | None] = mapped_column(nullable=True)

    # Relationships
    roles: Mapped[list["PlayerRole"]] = relationship("PlayerRole", back_populates="player")
    inventory: Mapped[list["PlayerInventory"]] = relationship(
        "PlayerInventory", back_populates="player", cascade="all, delete-orphan"
    )

    _SKILL_COLUMNS = {
        "attack": "attack_level",
        "strength": "strength_level",
        "defense": "defense_level",
        "hitpoints": "hitpoints_level",
        "prayer": "prayer_level",
        "agility": "agility_level",
        "combat_level": "combat_level",
    }

    def skill_level(self, skill: str) -> int:
        """Return the level of ``skill`` (1 for skills the player does not train)."""
        column = self._SKILL_COLUMNS.get(skill)
        if column is None:
            return 1
        return getattr(self, column) or 1

    def __repr__(self) -> str:
        return f"<Player(id={self.id}, username='{self.username}', gold={self.gold})>"


class Role(Base, TimestampMixin):
    """A title that can be held at a location (e.g. baron of a barony).

    Attributes:
        id: Primary key
        slug: Machine name, e.g. ``baron`` or ``village_chief``
        name: Display name
        location_type: Kind of location the role is held at
        permissions: JSON list of permission strings
        salary: Daily pay drawn from the location treasury
    """

    __tablename__ = "roles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    slug: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    location_type: Mapped[str] = mapped_column(String(20), nullable=False)
    permissions: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    salary: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    holders: Mapped[list["PlayerRole"]] = relationship("PlayerRole", back_populates="role")

    def has_permission(self, permission: str) -> bool:
        return permission in (self.permissions or [])

    def __repr__(self) -> str:
        return f"<Role(slug='{self.slug}', location_type='{self.location_type}')>"


class PlayerRole(Base, TimestampMixin):
    """Assignment of a role to a player at a specific location."""

    __tablename__ = "player_roles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    player_id: Mapped[int] = mapped_column(Integer, ForeignKey("players.id"), nullable=False)
    role_id: Mapped[int] = mapped_column(Integer, ForeignKey("roles.id"), nullable=False)
    location_type: Mapped[str] = mapped_column(String(20), nullable=False)
    location_id: Mapped[int] = mapped_column(Integer, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    total_salary_earned: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    player: Mapped["Player"] = relationship("Player", back_populates="roles")
    role: Mapped["Role"] = relationship("Role", back_populates="holders")

    __table_args__ = (
        Index("idx_player_roles_location", "location_type", "location_id"),
        Index("idx_player_roles_player", "player_id", "is_active"),
    )

    def __repr__(self) -> str:
        return (
            f"<PlayerRole(player_id={self.player_id}, role_id={self.role_id}, "
            f"location={self.location_type}:{self.location_id})>"
        )
