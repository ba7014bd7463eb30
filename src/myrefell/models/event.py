"""Festival and tournament models for the Myrefell game system.

This module contains models for:
- FestivalTypes and Festivals (seasonal celebrations held at a location)
- FestivalParticipants (players attending a festival)
- TournamentTypes and Tournaments (single-elimination contests)
- TournamentCompetitors and TournamentMatches (the bracket)
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


class FestivalType(Base, TimestampMixin):
    """Catalog entry for a kind of festival."""

    __tablename__ = "festival_types"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    slug: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    category: Mapped[str] = mapped_column(String(20), nullable=False, default="seasonal")
    season: Mapped[str | None] = mapped_column(String(20), nullable=True)
    duration_days: Mapped[int] = mapped_column(Integer, nullable=False, default=3)
    bonuses: Mapped[dict[str, int] | None] = mapped_column(JSON, nullable=True)
    activities: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    is_recurring: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<FestivalType(slug='{self.slug}', season='{self.season}')>"


class Festival(Base, TimestampMixin):
    """A festival held at a location.

    Attributes:
        festival_type_id: Kind of festival
        location_type/location_id: Host location
        status: scheduled/active/completed/cancelled
        starts_at/ends_at: Festival window
        budget: Gold spent on the festival by the organiser
        attendance_count: Participants recorded when the festival ends
        results: JSON summary written on completion
    """

    __tablename__ = "festivals"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    festival_type_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("festival_types.id"), nullable=False
    )
    location_type: Mapped[str] = mapped_column(String(20), nullable=False)
    location_id: Mapped[int] = mapped_column(Integer, nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="scheduled")
    starts_at: Mapped[datetime] = mapped_column(nullable=False)
    ends_at: Mapped[datetime] = mapped_column(nullable=False)
    budget: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    organized_by_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("players.id"), nullable=True
    )
    attendance_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    results: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    festival_type: Mapped["FestivalType"] = relationship("FestivalType")
    organizer: Mapped[Optional["Player"]] = relationship("Player")
    participants: Mapped[list["FestivalParticipant"]] = relationship(
        "FestivalParticipant", back_populates="festival", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("idx_festivals_location", "location_type", "location_id"),
        Index("idx_festivals_status", "status"),
    )

    def __repr__(self) -> str:
        return f"<Festival(id={self.id}, name='{self.name}', status='{self.status}')>"


class FestivalParticipant(Base, TimestampMixin):
    """A player taking part in a festival."""

    __tablename__ = "festival_participants"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    festival_id: Mapped[int] = mapped_column(Integer, ForeignKey("festivals.id"), nullable=False)
    player_id: Mapped[int] = mapped_column(Integer, ForeignKey("players.id"), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="attendee")
    gold_spent: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    gold_earned: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    activities_completed: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)

    festival: Mapped["Festival"] = relationship("Festival", back_populates="participants")
    player: Mapped["Player"] = relationship("Player")

    __table_args__ = (
        UniqueConstraint("festival_id", "player_id", name="uq_festival_participants"),
    )


class TournamentType(Base, TimestampMixin):
    """Catalog entry for a kind of tournament.

    Attributes:
        primary_stat: Skill added to every exchange roll
        entry_fee: Gold paid into the prize pool on registration
        min_level: Minimum combat level to register
        max_participants: Bracket capacity
        prize_distribution: JSON mapping ``{"1st": 50, "2nd": 30, ...}`` in percent
        is_lethal: Whether the loser dies (trial by combat)
    """

    __tablename__ = "tournament_types"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    slug: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    combat_type: Mapped[str] = mapped_column(String(20), nullable=False)
    primary_stat: Mapped[str] = mapped_column(String(30), nullable=False)
    entry_fee: Mapped[int] = mapped_column(Integer, nullable=False, default=100)
    min_level: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    max_participants: Mapped[int] = mapped_column(Integer, nullable=False, default=16)
    prize_distribution: Mapped[dict[str, int] | None] = mapped_column(JSON, nullable=True)
    is_lethal: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    def __repr__(self) -> str:
        return f"<TournamentType(slug='{self.slug}')>"


class Tournament(Base, TimestampMixin):
    """A single-elimination tournament."""

    __tablename__ = "tournaments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    tournament_type_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("tournament_types.id"), nullable=False
    )
    festival_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("festivals.id"), nullable=True
    )
    location_type: Mapped[str] = mapped_column(String(20), nullable=False)
    location_id: Mapped[int] = mapped_column(Integer, nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="registration")
    registration_ends_at: Mapped[datetime] = mapped_column(nullable=False)
    starts_at: Mapped[datetime] = mapped_column(nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    prize_pool: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    current_round: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_rounds: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    sponsored_by_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("players.id"), nullable=True
    )
    sponsor_contribution: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    tournament_type: Mapped["TournamentType"] = relationship("TournamentType")
    festival: Mapped[Optional["Festival"]] = relationship("Festival")
    competitors: Mapped[list["TournamentCompetitor"]] = relationship(
        "TournamentCompetitor", back_populates="tournament", cascade="all, delete-orphan"
    )
    matches: Mapped[list["TournamentMatch"]] = relationship(
        "TournamentMatch",
        back_populates="tournament",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("idx_tournaments_location", "location_type", "location_id"),
        Index("idx_tournaments_status", "status"),
    )

    def __repr__(self) -> str:
        return f"<Tournament(id={self.id}, name='{self.name}', status='{self.status}')>"


class TournamentCompetitor(Base, TimestampMixin):
    """A player's entry in a tournament."""

    __tablename__ = "tournament_competitors"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    tournament_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("tournaments.id"), nullable=False
    )
    player_id: Mapped[int] = mapped_column(Integer, ForeignKey("players.id"), nullable=False)
    seed: Mapped[int | None] = mapped_column(Integer, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="registered")
    wins: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    losses: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    final_placement: Mapped[int | None] = mapped_column(Integer, nullable=True)
    prize_won: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    tournament: Mapped["Tournament"] = relationship("Tournament", back_populates="competitors")
    player: Mapped["Player"] = relationship("Player")

    __table_args__ = (
        UniqueConstraint("tournament_id", "player_id", name="uq_tournament_competitors"),
    )

    def __repr__(self) -> str:
        return (
            f"<TournamentCompetitor(id={self.id}, player_id={self.player_id}, "
            f"status='{self.status}')>"
        )


class TournamentMatch(Base, TimestampMixin):
    """A bracket match; ``competitor2_id`` is None for a bye."""

    __tablename__ = "tournament_matches"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    tournament_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("tournaments.id"), nullable=False
    )
    round_number: Mapped[int] = mapped_column(Integer, nullable=False)
    match_number: Mapped[int] = mapped_column(Integer, nullable=False)
    competitor1_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("tournament_competitors.id"), nullable=False
    )
    competitor2_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("tournament_competitors.id"), nullable=True
    )
    winner_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("tournament_competitors.id"), nullable=True
    )
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    competitor1_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    competitor2_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    combat_log: Mapped[list[dict[str, Any]] | None] = mapped_column(JSON, nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(nullable=True)

    tournament: Mapped["Tournament"] = relationship("Tournament", back_populates="matches")
    competitor1: Mapped["TournamentCompetitor"] = relationship(
        "TournamentCompetitor", foreign_keys=[competitor1_id]
    )
    competitor2: Mapped[Optional["TournamentCompetitor"]] = relationship(
        "TournamentCompetitor", foreign_keys=[competitor2_id]
    )
    winner: Mapped[Optional["TournamentCompetitor"]] = relationship(
        "TournamentCompetitor", foreign_keys=[winner_id]
    )

    __table_args__ = (
        UniqueConstraint(
            "tournament_id", "round_number", "match_number", name="uq_tournament_matches"
        ),
        Index("idx_tournament_matches_round", "tournament_id", "round_number"),
    )

    @property
    def is_bye(self) -> bool:
        return self.competitor2_id is None

    def __repr__(self) -> str:
        return (
            f"<TournamentMatch(id={self.id}, round={self.round_number}, "
            f"match={self.match_number}, status='{self.status}')>"
        )
