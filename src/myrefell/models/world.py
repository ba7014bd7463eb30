"""Location models for the Myrefell world map.

The political hierarchy is village/town -> barony -> kingdom. Other tables
refer to a location with a ``(location_type, location_id)`` pair rather than
a foreign key, so any of these four tables can be the target.
"""

from typing import Optional

from sqlalchemy import CheckConstraint, Float, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin


class Kingdom(Base, TimestampMixin):
    """Top level of the political hierarchy.

    Attributes:
        id: Primary key
        name: Display name
        coordinates_x: Map x coordinate of the capital
        coordinates_y: Map y coordinate of the capital
        tax_rate: Percentage levied on barony treasuries each day
    """

    __tablename__ = "kingdoms"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    biome: Mapped[str] = mapped_column(String(30), nullable=False, default="plains")
    coordinates_x: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    coordinates_y: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    tax_rate: Mapped[float] = mapped_column(Float, nullable=False, default=10.0)

    baronies: Mapped[list["Barony"]] = relationship("Barony", back_populates="kingdom")

    __table_args__ = (
        CheckConstraint("tax_rate >= 0 AND tax_rate <= 50", name="ck_kingdoms_tax_rate"),
    )

    def __repr__(self) -> str:
        return f"<Kingdom(id={self.id}, name='{self.name}')>"


class Barony(Base, TimestampMixin):
    """A barony belonging to a kingdom; collects taxes from its settlements.

    Attributes:
        id: Primary key
        kingdom_id: Foreign key to the owning kingdom
        name: Display name
        tax_rate: Percentage levied on residents and on village/town treasuries
    """

    __tablename__ = "baronies"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    kingdom_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("kingdoms.id"), nullable=True
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    biome: Mapped[str] = mapped_column(String(30), nullable=False, default="plains")
    coordinates_x: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    coordinates_y: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    tax_rate: Mapped[float] = mapped_column(Float, nullable=False, default=10.0)

    kingdom: Mapped[Optional["Kingdom"]] = relationship("Kingdom", back_populates="baronies")
    villages: Mapped[list["Village"]] = relationship("Village", back_populates="barony")
    towns: Mapped[list["Town"]] = relationship("Town", back_populates="barony")

    __table_args__ = (
        CheckConstraint("tax_rate >= 0 AND tax_rate <= 50", name="ck_baronies_tax_rate"),
    )

    def __repr__(self) -> str:
        return f"<Barony(id={self.id}, name='{self.name}', kingdom_id={self.kingdom_id})>"


class Town(Base, TimestampMixin):
    """A chartered town inside a barony."""

    __tablename__ = "towns"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    barony_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("baronies.id"), nullable=True
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    biome: Mapped[str] = mapped_column(String(30), nullable=False, default="plains")
    coordinates_x: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    coordinates_y: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    barony: Mapped[Optional["Barony"]] = relationship("Barony", back_populates="towns")

    def __repr__(self) -> str:
        return f"<Town(id={self.id}, name='{self.name}')>"


class Village(Base, TimestampMixin):
    """A village inside a barony."""

    __tablename__ = "villages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    barony_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("baronies.id"), nullable=True
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    biome: Mapped[str] = mapped_column(String(30), nullable=False, default="plains")
    coordinates_x: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    coordinates_y: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    barony: Mapped[Optional["Barony"]] = relationship("Barony", back_populates="villages")

    def __repr__(self) -> str:
        return f"<Village(id={self.id}, name='{self.name}')>"
