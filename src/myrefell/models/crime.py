"""Crime and justice models for the Myrefell game system.

This module contains models for:
- CrimeTypes (catalog of offences and their default penalties)
- Crimes (an offence committed at a location) and their witnesses
- Accusations (a player's charge against another player)
- Trials (court proceedings heard by a judge)
- Punishments (sentences handed down by a verdict)
- Bounties (gold rewards posted against a player)
- JailInmates, Outlaws and Exiles (the lasting effects of punishments)
"""

from datetime import datetime
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin

if TYPE_CHECKING:
    from .player import Player


class CrimeType(Base, TimestampMixin):
    """Catalog entry describing an offence.

    Attributes:
        id: Primary key
        slug: Machine name (e.g. ``theft``)
        severity: minor/moderate/major/capital
        court_level: Court that hears the case (village/barony/kingdom/church)
        base_fine: Default fine in gold
        base_jail_days: Default jail sentence
        can_be_outlawed: Whether outlawry is an allowed punishment
        can_be_executed: Whether execution is an allowed punishment
        is_religious: Whether the offence is against the faith
    """

    __tablename__ = "crime_types"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    slug: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    severity: Mapped[str] = mapped_column(String(20), nullable=False)
    court_level: Mapped[str] = mapped_column(String(20), nullable=False)
    base_fine: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    base_jail_days: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    can_be_outlawed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    can_be_executed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_religious: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    def __repr__(self) -> str:
        return f"<CrimeType(slug='{self.slug}', court_level='{self.court_level}')>"


class Crime(Base, TimestampMixin):
    """An offence committed by a player at a location."""

    __tablename__ = "crimes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    crime_type_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("crime_types.id"), nullable=False
    )
    perpetrator_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("players.id"), nullable=False
    )
    victim_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("players.id"), nullable=True
    )
    location_type: Mapped[str] = mapped_column(String(20), nullable=False)
    location_id: Mapped[int] = mapped_column(Integer, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    evidence: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    status: Mapped[str] = mapped_column(String(30), nullable=False)
    committed_at: Mapped[datetime] = mapped_column(nullable=False)
    detected_at: Mapped[datetime | None] = mapped_column(nullable=True)

    crime_type: Mapped["CrimeType"] = relationship("CrimeType")
    perpetrator: Mapped["Player"] = relationship("Player", foreign_keys=[perpetrator_id])
    victim: Mapped[Optional["Player"]] = relationship("Player", foreign_keys=[victim_id])
    witnesses: Mapped[list["CrimeWitness"]] = relationship(
        "CrimeWitness", back_populates="crime", order_by="CrimeWitness.id"
    )

    __table_args__ = (
        Index("idx_crimes_perpetrator_status", "perpetrator_id", "status"),
        Index("idx_crimes_location", "location_type", "location_id"),
    )

    def __repr__(self) -> str:
        return f"<Crime(id={self.id}, perpetrator_id={self.perpetrator_id}, status='{self.status}')>"


class CrimeWitness(Base, TimestampMixin):
    """A player (or NPC) who saw a crime being committed."""

    __tablename__ = "crime_witnesses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    crime_id: Mapped[int] = mapped_column(Integer, ForeignKey("crimes.id"), nullable=False)
    witness_id: Mapped[int] = mapped_column(Integer, ForeignKey("players.id"), nullable=False)
    is_npc: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    npc_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    testimony: Mapped[str | None] = mapped_column(Text, nullable=True)
    has_testified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    crime: Mapped["Crime"] = relationship("Crime", back_populates="witnesses")
    witness: Mapped["Player"] = relationship("Player")

    __table_args__ = (UniqueConstraint("crime_id", "witness_id", name="uq_crime_witnesses"),)


class Accusation(Base, TimestampMixin):
    """A formal charge brought by one player against another.

    Attributes:
        id: Primary key
        crime_id: Crime created when the accusation is accepted
        accuser_id: Player bringing the charge
        accused_id: Player being charged
        crime_type_id: Offence alleged
        location_type/location_id: Where the accusation was filed
        accusation_text: The accuser's statement
        evidence_provided: Optional JSON evidence payload
        status: pending/accepted/rejected/false_accusation/withdrawn
        reviewed_by: Judge who reviewed the accusation
        review_notes: Judge's notes
        reviewed_at: When the review happened
    """

    __tablename__ = "accusations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    crime_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("crimes.id"), nullable=True)
    accuser_id: Mapped[int] = mapped_column(Integer, ForeignKey("players.id"), nullable=False)
    accused_id: Mapped[int] = mapped_column(Integer, ForeignKey("players.id"), nullable=False)
    crime_type_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("crime_types.id"), nullable=False
    )
    location_type: Mapped[str] = mapped_column(String(20), nullable=False)
    location_id: Mapped[int] = mapped_column(Integer, nullable=False)
    accusation_text: Mapped[str] = mapped_column(Text, nullable=False)
    evidence_provided: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    reviewed_by: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("players.id"), nullable=True
    )
    review_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(nullable=True)

    crime: Mapped[Optional["Crime"]] = relationship("Crime")
    crime_type: Mapped["CrimeType"] = relationship("CrimeType")
    accuser: Mapped["Player"] = relationship("Player", foreign_keys=[accuser_id])
    accused: Mapped["Player"] = relationship("Player", foreign_keys=[accused_id])

    __table_args__ = (
        Index("idx_accusations_accused_status", "accused_id", "status"),
        Index("idx_accusations_location", "location_type", "location_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<Accusation(id={self.id}, accuser_id={self.accuser_id}, "
            f"accused_id={self.accused_id}, status='{self.status}')>"
        )


class Trial(Base, TimestampMixin):
    """Court proceedings against a defendant.

    Status moves scheduled -> (in_progress) -> awaiting_verdict -> concluded,
    with appealed and dismissed as terminal alternatives.
    """

    __tablename__ = "trials"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    crime_id: Mapped[int] = mapped_column(Integer, ForeignKey("crimes.id"), nullable=False)
    accusation_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("accusations.id"), nullable=True
    )
    appeal_of_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("trials.id"), nullable=True
    )
    defendant_id: Mapped[int] = mapped_column(Integer, ForeignKey("players.id"), nullable=False)
    judge_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("players.id"), nullable=True)
    court_level: Mapped[str] = mapped_column(String(20), nullable=False)
    location_type: Mapped[str] = mapped_column(String(20), nullable=False)
    location_id: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    prosecution_argument: Mapped[str | None] = mapped_column(Text, nullable=True)
    defense_argument: Mapped[str | None] = mapped_column(Text, nullable=True)
    verdict: Mapped[str | None] = mapped_column(String(20), nullable=True)
    verdict_reasoning: Mapped[str | None] = mapped_column(Text, nullable=True)
    scheduled_at: Mapped[datetime | None] = mapped_column(nullable=True)
    started_at: Mapped[datetime | None] = mapped_column(nullable=True)
    concluded_at: Mapped[datetime | None] = mapped_column(nullable=True)

    crime: Mapped["Crime"] = relationship("Crime")
    accusation: Mapped[Optional["Accusation"]] = relationship("Accusation")
    defendant: Mapped["Player"] = relationship("Player", foreign_keys=[defendant_id])
    judge: Mapped[Optional["Player"]] = relationship("Player", foreign_keys=[judge_id])
    punishments: Mapped[list["Punishment"]] = relationship("Punishment", back_populates="trial")

    __table_args__ = (
        Index("idx_trials_defendant_status", "defendant_id", "status"),
        Index("idx_trials_judge_status", "judge_id", "status"),
    )

    def __repr__(self) -> str:
        return f"<Trial(id={self.id}, defendant_id={self.defendant_id}, status='{self.status}')>"


class Punishment(Base, TimestampMixin):
    """A sentence handed down at the end of a trial."""

    __tablename__ = "punishments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    trial_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("trials.id"), nullable=True)
    criminal_id: Mapped[int] = mapped_column(Integer, ForeignKey("players.id"), nullable=False)
    issued_by: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("players.id"), nullable=True
    )
    type: Mapped[str] = mapped_column(String(30), nullable=False)
    fine_amount: Mapped[int | None] = mapped_column(Integer, nullable=True)
    jail_days: Mapped[int | None] = mapped_column(Integer, nullable=True)
    exile_from_type: Mapped[str | None] = mapped_column(String(20), nullable=True)
    exile_from_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    community_service_hours: Mapped[int | None] = mapped_column(Integer, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    starts_at: Mapped[datetime | None] = mapped_column(nullable=True)
    ends_at: Mapped[datetime | None] = mapped_column(nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    trial: Mapped[Optional["Trial"]] = relationship("Trial", back_populates="punishments")
    criminal: Mapped["Player"] = relationship("Player", foreign_keys=[criminal_id])

    __table_args__ = (
        Index("idx_punishments_criminal_status", "criminal_id", "status"),
        Index("idx_punishments_type_status", "type", "status"),
    )

    def __repr__(self) -> str:
        return f"<Punishment(id={self.id}, type='{self.type}', status='{self.status}')>"


class Bounty(Base, TimestampMixin):
    """Gold reward for bringing a player to justice.

    Attributes:
        target_id: Player the bounty is on
        posted_by: Player who posted it (None for location bounties)
        poster_type: player/village/barony/kingdom
        poster_location_id: Location that posted it when not a player
        reward_amount: Gold paid to the claimant
        capture_type: alive/dead_or_alive/dead
        status: active/claimed/expired/cancelled
    """

    __tablename__ = "bounties"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    target_id: Mapped[int] = mapped_column(Integer, ForeignKey("players.id"), nullable=False)
    posted_by: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("players.id"), nullable=True
    )
    crime_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("crimes.id"), nullable=True)
    poster_type: Mapped[str] = mapped_column(String(20), nullable=False, default="player")
    poster_location_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    reward_amount: Mapped[int] = mapped_column(Integer, nullable=False)
    capture_type: Mapped[str] = mapped_column(String(20), nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    claimed_by: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("players.id"), nullable=True
    )
    claimed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    expires_at: Mapped[datetime | None] = mapped_column(nullable=True)

    target: Mapped["Player"] = relationship("Player", foreign_keys=[target_id])
    poster: Mapped[Optional["Player"]] = relationship("Player", foreign_keys=[posted_by])
    claimant: Mapped[Optional["Player"]] = relationship("Player", foreign_keys=[claimed_by])

    __table_args__ = (
        Index("idx_bounties_target_status", "target_id", "status"),
        Index("idx_bounties_status_expires", "status", "expires_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<Bounty(id={self.id}, target_id={self.target_id}, "
            f"reward={self.reward_amount}, status='{self.status}')>"
        )


class JailInmate(Base, TimestampMixin):
    """A player serving a jail sentence."""

    __tablename__ = "jail_inmates"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    prisoner_id: Mapped[int] = mapped_column(Integer, ForeignKey("players.id"), nullable=False)
    punishment_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("punishments.id"), nullable=False
    )
    jail_location_type: Mapped[str] = mapped_column(String(20), nullable=False)
    jail_location_id: Mapped[int] = mapped_column(Integer, nullable=False)
    jailed_at: Mapped[datetime] = mapped_column(nullable=False)
    release_at: Mapped[datetime] = mapped_column(nullable=False)
    released_at: Mapped[datetime | None] = mapped_column(nullable=True)
    escaped: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    prisoner: Mapped["Player"] = relationship("Player")
    punishment: Mapped["Punishment"] = relationship("Punishment")

    __table_args__ = (Index("idx_jail_inmates_prisoner", "prisoner_id"),)


class Outlaw(Base, TimestampMixin):
    """A player declared outside the protection of the law."""

    __tablename__ = "outlaws"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    player_id: Mapped[int] = mapped_column(Integer, ForeignKey("players.id"), nullable=False)
    punishment_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("punishments.id"), nullable=False
    )
    declared_by_type: Mapped[str] = mapped_column(String(20), nullable=False)
    declared_by_id: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    declared_at: Mapped[datetime] = mapped_column(nullable=False)
    expires_at: Mapped[datetime | None] = mapped_column(nullable=True)

    player: Mapped["Player"] = relationship("Player")
    punishment: Mapped["Punishment"] = relationship("Punishment")

    __table_args__ = (Index("idx_outlaws_player_status", "player_id", "status"),)


class Exile(Base, TimestampMixin):
    """A player banished from a location."""

    __tablename__ = "exiles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    player_id: Mapped[int] = mapped_column(Integer, ForeignKey("players.id"), nullable=False)
    punishment_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("punishments.id"), nullable=False
    )
    exiled_from_type: Mapped[str] = mapped_column(String(20), nullable=False)
    exiled_from_id: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    exiled_at: Mapped[datetime] = mapped_column(nullable=False)
    expires_at: Mapped[datetime | None] = mapped_column(nullable=True)

    player: Mapped["Player"] = relationship("Player")
    punishment: Mapped["Punishment"] = relationship("Punishment")

    __table_args__ = (
        Index("idx_exiles_player_status", "player_id", "status"),
        Index("idx_exiles_location", "exiled_from_type", "exiled_from_id"),
    )
