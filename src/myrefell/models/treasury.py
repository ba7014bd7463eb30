"""Treasury, tax and salary models for the Myrefell game system.

Every governed location owns one treasury. All gold entering or leaving a
treasury is written to ``treasury_transactions`` with the balance after the
movement, so a treasury's balance can always be reconciled from its ledger.
"""

from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    Float,
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
    from .player import Player, PlayerRole


class LocationTreasury(Base, TimestampMixin):
    """Gold held by a village, town, barony or kingdom.

    Attributes:
        location_type/location_id: Owner location
        balance: Current gold
        total_collected: Lifetime gold deposited
        total_distributed: Lifetime gold withdrawn
    """

    __tablename__ = "location_treasuries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    location_type: Mapped[str] = mapped_column(String(20), nullable=False)
    location_id: Mapped[int] = mapped_column(Integer, nullable=False)
    balance: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_collected: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_distributed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    transactions: Mapped[list["TreasuryTransaction"]] = relationship(
        "TreasuryTransaction", back_populates="treasury", cascade="all, delete-orphan"
    )

    __table_args__ = (
        UniqueConstraint("location_type", "location_id", name="uq_location_treasuries"),
    )

    def __repr__(self) -> str:
        return (
            f"<LocationTreasury({self.location_type}:{self.location_id}, "
            f"balance={self.balance})>"
        )


class TreasuryTransaction(Base, TimestampCreatedMixin):
    """Ledger entry for a treasury. ``amount`` is negative for withdrawals."""

    __tablename__ = "treasury_transactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    treasury_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("location_treasuries.id"), nullable=False
    )
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    balance_after: Mapped[int] = mapped_column(Integer, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    related_player_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("players.id"), nullable=True
    )

    treasury: Mapped["LocationTreasury"] = relationship(
        "LocationTreasury", back_populates="transactions"
    )
    related_player: Mapped[Optional["Player"]] = relationship("Player")

    __table_args__ = (Index("idx_treasury_transactions_treasury", "treasury_id"),)


class TaxCollection(Base, TimestampCreatedMixin):
    """A tax payment, from a player (income) or from a lower treasury (upstream).

    A payer pays a given tax_type at most once per ``tax_period``.
    """

    __tablename__ = "tax_collections"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    payer_player_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("players.id"), nullable=True
    )
    payer_location_type: Mapped[str | None] = mapped_column(String(20), nullable=True)
    payer_location_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    receiver_location_type: Mapped[str] = mapped_column(String(20), nullable=False)
    receiver_location_id: Mapped[int] = mapped_column(Integer, nullable=False)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    tax_rate: Mapped[float] = mapped_column(Float, nullable=False)
    tax_type: Mapped[str] = mapped_column(String(20), nullable=False)
    tax_period: Mapped[str] = mapped_column(String(10), nullable=False)

    payer: Mapped[Optional["Player"]] = relationship("Player")

    __table_args__ = (
        Index("idx_tax_collections_payer", "payer_player_id", "tax_period"),
        Index("idx_tax_collections_payer_location", "payer_location_type", "payer_location_id"),
    )


class SalaryPayment(Base, TimestampCreatedMixin):
    """Daily pay for holding a role, drawn from the role's location treasury."""

    __tablename__ = "salary_payments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    player_role_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("player_roles.id"), nullable=False
    )
    player_id: Mapped[int] = mapped_column(Integer, ForeignKey("players.id"), nullable=False)
    treasury_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("location_treasuries.id"), nullable=False
    )
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    pay_period: Mapped[str] = mapped_column(String(10), nullable=False)

    player_role: Mapped["PlayerRole"] = relationship("PlayerRole")

    __table_args__ = (
        UniqueConstraint("player_role_id", "pay_period", name="uq_salary_payments_period"),
    )
