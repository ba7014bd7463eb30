"""Religion and headquarters models for the Myrefell game system.

This module contains models for:
- Religions and their members (with per-member devotion)
- ReligionTreasuries and their ledger
- ReligionHeadquarters, its tier and built features
- HqConstructionProjects funded by member contributions
- PlayerFeatureBuffs granted by praying at a feature
"""

from datetime import datetime
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampCreatedMixin, TimestampMixin

if TYPE_CHECKING:
    from .player import Player


class Religion(Base, TimestampMixin):
    """A faith founded by a player (its prophet)."""

    __tablename__ = "religions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    founder_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("players.id"), nullable=True
    )

    founder: Mapped[Optional["Player"]] = relationship("Player")
    members: Mapped[list["ReligionMember"]] = relationship(
        "ReligionMember", back_populates="religion", cascade="all, delete-orphan"
    )
    treasury: Mapped[Optional["ReligionTreasury"]] = relationship(
        "ReligionTreasury", back_populates="religion", uselist=False
    )
    headquarters: Mapped[Optional["ReligionHeadquarters"]] = relationship(
        "ReligionHeadquarters", back_populates="religion", uselist=False
    )

    def __repr__(self) -> str:
        return f"<Religion(id={self.id}, name='{self.name}')>"


class ReligionMember(Base, TimestampMixin):
    """Membership of a player in a religion; devotion is spent on HQ projects."""

    __tablename__ = "religion_members"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    religion_id: Mapped[int] = mapped_column(Integer, ForeignKey("religions.id"), nullable=False)
    player_id: Mapped[int] = mapped_column(Integer, ForeignKey("players.id"), nullable=False)
    rank: Mapped[str] = mapped_column(String(20), nullable=False, default="follower")
    devotion: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    religion: Mapped["Religion"] = relationship("Religion", back_populates="members")
    player: Mapped["Player"] = relationship("Player")

    __table_args__ = (
        UniqueConstraint("religion_id", "player_id", name="uq_religion_members"),
        CheckConstraint("devotion >= 0", name="ck_religion_members_devotion"),
    )

    @property
    def is_prophet(self) -> bool:
        return self.rank == "prophet"


class ReligionTreasury(Base, TimestampMixin):
    """Gold held by a religion."""

    __tablename__ = "religion_treasuries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    religion_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("religions.id"), nullable=False, unique=True
    )
    balance: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_collected: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_distributed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    religion: Mapped["Religion"] = relationship("Religion", back_populates="treasury")
    transactions: Mapped[list["ReligionTreasuryTransaction"]] = relationship(
        "ReligionTreasuryTransaction", back_populates="treasury", cascade="all, delete-orphan"
    )


class ReligionTreasuryTransaction(Base, TimestampCreatedMixin):
    """Ledger entry for a religion treasury."""

    __tablename__ = "religion_treasury_transactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    treasury_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("religion_treasuries.id"), nullable=False
    )
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    balance_after: Mapped[int] = mapped_column(Integer, nullable=False)
    player_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("players.id"), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    treasury: Mapped["ReligionTreasury"] = relationship(
        "ReligionTreasury", back_populates="transactions"
    )


class HqFeatureType(Base, TimestampMixin):
    """Catalog entry for a feature that can be built in a headquarters.

    Attributes:
        slug: Machine name (e.g. ``sacred-altar``)
        category: altar/vault/shrine/library/garden
        min_hq_tier: Lowest HQ tier that can host the feature
        max_level: Highest level the feature can reach
        effects: JSON list, one ``{effect: value}`` mapping per level
        level_costs: JSON list, one ``{"gold": n, "devotion": n}`` mapping per level
    """

    __tablename__ = "hq_feature_types"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    slug: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str] = mapped_column(String(20), nullable=False)
    min_hq_tier: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    max_level: Mapped[int] = mapped_column(Integer, nullable=False, default=5)
    effects: Mapped[list[dict[str, int]]] = mapped_column(JSON, nullable=False)
    level_costs: Mapped[list[dict[str, int]]] = mapped_column(JSON, nullable=False)

    def effects_at(self, level: int) -> dict[str, int]:
        """Return the effect mapping for ``level`` (1-based)."""
        if level < 1 or level > len(self.effects):
            return {}
        return dict(self.effects[level - 1])

    def cost_at(self, level: int) -> dict[str, int]:
        """Return the gold/devotion cost to reach ``level`` (1-based)."""
        if level < 1 or level > len(self.level_costs):
            raise ValueError(f"{self.name} has no level {level}.")
        return dict(self.level_costs[level - 1])

    def __repr__(self) -> str:
        return f"<HqFeatureType(slug='{self.slug}', min_hq_tier={self.min_hq_tier})>"


class ReligionHeadquarters(Base, TimestampMixin):
    """The physical seat of a religion.

    An HQ row exists from the religion's founding but is only placed on the
    map once the prophet builds it (``is_built``).
    """

    __tablename__ = "religion_headquarters"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    religion_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("religions.id"), nullable=False, unique=True
    )
    location_type: Mapped[str | None] = mapped_column(String(20), nullable=True)
    location_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    tier: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    is_built: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    total_devotion_invested: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_gold_invested: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    religion: Mapped["Religion"] = relationship("Religion", back_populates="headquarters")
    features: Mapped[list["ReligionHqFeature"]] = relationship(
        "ReligionHqFeature", back_populates="headquarters", cascade="all, delete-orphan"
    )
    projects: Mapped[list["HqConstructionProject"]] = relationship(
        "HqConstructionProject", back_populates="headquarters", cascade="all, delete-orphan"
    )

    __table_args__ = (CheckConstraint("tier >= 1 AND tier <= 6", name="ck_religion_hq_tier"),)

    def __repr__(self) -> str:
        return f"<ReligionHeadquarters(religion_id={self.religion_id}, tier={self.tier})>"


class ReligionHqFeature(Base, TimestampMixin):
    """A feature built in a headquarters at a given level."""

    __tablename__ = "religion_hq_features"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    hq_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("religion_headquarters.id"), nullable=False
    )
    feature_type_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("hq_feature_types.id"), nullable=False
    )
    level: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    headquarters: Mapped["ReligionHeadquarters"] = relationship(
        "ReligionHeadquarters", back_populates="features"
    )
    feature_type: Mapped["HqFeatureType"] = relationship("HqFeatureType")

    __table_args__ = (
        UniqueConstraint("hq_id", "feature_type_id", name="uq_religion_hq_features"),
    )

    @property
    def effects(self) -> dict[str, int]:
        return self.feature_type.effects_at(self.level)


class HqConstructionProject(Base, TimestampMixin):
    """A funded construction job: an HQ upgrade, or a feature build/upgrade.

    Attributes:
        project_type: hq_upgrade/feature_build/feature_upgrade
        target_level: Tier (for upgrades) or feature level being built
        status: pending/in_progress/constructing/completed/cancelled
        progress: Percentage of requirements funded
        gold_required/gold_invested: Gold target and amount contributed
        devotion_required/devotion_invested: Devotion target and amount contributed
        items_required/items_invested: JSON ``{item name: quantity}`` mappings
        construction_ends_at: When construction finishes once fully funded
    """

    __tablename__ = "hq_construction_projects"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    hq_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("religion_headquarters.id"), nullable=False
    )
    feature_type_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("hq_feature_types.id"), nullable=True
    )
    project_type: Mapped[str] = mapped_column(String(20), nullable=False)
    target_level: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    progress: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    gold_required: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    gold_invested: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    devotion_required: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    devotion_invested: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    items_required: Mapped[dict[str, int]] = mapped_column(JSON, nullable=False, default=dict)
    items_invested: Mapped[dict[str, int]] = mapped_column(JSON, nullable=False, default=dict)
    started_by_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("players.id"), nullable=True
    )
    construction_ends_at: Mapped[datetime | None] = mapped_column(nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(nullable=True)

    headquarters: Mapped["ReligionHeadquarters"] = relationship(
        "ReligionHeadquarters", back_populates="projects"
    )
    feature_type: Mapped[Optional["HqFeatureType"]] = relationship("HqFeatureType")

    __table_args__ = (Index("idx_hq_projects_hq_status", "hq_id", "status"),)

    def remaining(self) -> dict[str, Any]:
        """Return how much gold, devotion and each item is still needed."""
        invested = self.items_invested or {}
        items = {
            name: max(0, quantity - invested.get(name, 0))
            for name, quantity in (self.items_required or {}).items()
        }
        return {
            "gold": max(0, self.gold_required - self.gold_invested),
            "devotion": max(0, self.devotion_required - self.devotion_invested),
            "items": {name: qty for name, qty in items.items() if qty > 0},
        }

    def is_funded(self) -> bool:
        remaining = self.remaining()
        return remaining["gold"] == 0 and remaining["devotion"] == 0 and not remaining["items"]

    def __repr__(self) -> str:
        return (
            f"<HqConstructionProject(id={self.id}, type='{self.project_type}', "
            f"target={self.target_level}, status='{self.status}')>"
        )


class PlayerFeatureBuff(Base, TimestampMixin):
    """Temporary effects a player gains by praying at an HQ feature."""

    __tablename__ = "player_feature_buffs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    player_id: Mapped[int] = mapped_column(Integer, ForeignKey("players.id"), nullable=False)
    hq_feature_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("religion_hq_features.id"), nullable=False
    )
    effects: Mapped[dict[str, int]] = mapped_column(JSON, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(nullable=False)

    feature: Mapped["ReligionHqFeature"] = relationship("ReligionHqFeature")

    __table_args__ = (
        UniqueConstraint("player_id", "hq_feature_id", name="uq_player_feature_buffs"),
    )
