"""Seed data initialization for catalog tables.

This module copies the static rule tables from ``myrefell.domain.rules`` into
the catalog tables (crime types, festival and tournament types, HQ feature
types) and adds the base roles and items.
"""

from sqlalchemy import select
from sqlalchemy.orm import Session

from myrefell.domain import rules

from .crime import CrimeType
from .event import FestivalType, TournamentType
from .item import Item
from .player import Role
from .religion import HqFeatureType


def _already_seeded(session: Session, model: type) -> bool:
    return session.execute(select(model).limit(1)).scalar_one_or_none() is not None


def seed_crime_types(session: Session) -> None:
    """Seed the crime_types table.

    Args:
        session: SQLAlchemy session to use for database operations
    """
    if _already_seeded(session, CrimeType):
        return

    session.add_all(
        CrimeType(
            slug=kind.slug,
            name=kind.name,
            description=kind.description,
            severity=kind.severity.value,
            court_level=kind.court_level.value,
            base_fine=kind.base_fine,
            base_jail_days=kind.base_jail_days,
            can_be_outlawed=kind.can_be_outlawed,
            can_be_executed=kind.can_be_executed,
            is_religious=kind.is_religious,
        )
        for kind in rules.CRIME_TYPES
    )
    session.commit()


def seed_event_types(session: Session) -> None:
    """Seed the festival_types and tournament_types tables."""
    if not _already_seeded(session, FestivalType):
        session.add_all(
            FestivalType(
                slug=kind.slug,
                name=kind.name,
                description=kind.description,
                category=kind.category,
                season=kind.season,
                duration_days=kind.duration_days,
                bonuses=dict(kind.bonuses),
                activities=list(kind.activities),
            )
            for kind in rules.FESTIVAL_TYPES
        )

    if not _already_seeded(session, TournamentType):
        session.add_all(
            TournamentType(
                slug=kind.slug,
                name=kind.name,
                description=kind.description,
                combat_type=kind.combat_type,
                primary_stat=kind.primary_stat,
                entry_fee=kind.entry_fee,
                min_level=kind.min_level,
                max_participants=kind.max_participants,
                prize_distribution=dict(kind.prize_distribution),
                is_lethal=kind.is_lethal,
            )
            for kind in rules.TOURNAMENT_TYPES
        )
    session.commit()


def seed_feature_types(session: Session) -> None:
    """Seed the hq_feature_types table."""
    if _already_seeded(session, HqFeatureType):
        return

    session.add_all(
        HqFeatureType(
            slug=kind.slug,
            name=kind.name,
            description=kind.description,
            category=kind.category,
            min_hq_tier=kind.min_hq_tier,
            max_level=kind.max_level,
            effects=[dict(effect) for effect in kind.effects],
            level_costs=[dict(cost) for cost in kind.level_costs],
        )
        for kind in rules.FEATURE_TYPES
    )
    session.commit()


def seed_roles(session: Session) -> None:
    """Seed the titled roles used by courts, taxes and salaries."""
    if _already_seeded(session, Role):
        return

    session.add_all(
        [
            Role(slug="elder", name="Village Elder", location_type="village",
                 permissions=["review_accusations"], salary=20),
            Role(slug="village_chief", name="Village Chief", location_type="village",
                 permissions=["review_accusations"], salary=30),
            Role(slug="baron", name="Baron", location_type="barony",
                 permissions=["set_taxes", "review_accusations"], salary=100),
            Role(slug="magistrate", name="Magistrate", location_type="barony",
                 permissions=["review_accusations"], salary=60),
            Role(slug="king", name="King", location_type="kingdom",
                 permissions=["set_kingdom_taxes", "review_accusations", "pardon"], salary=250),
            Role(slug="high_judge", name="High Judge", location_type="kingdom",
                 permissions=["review_accusations"], salary=120),
            Role(slug="high_priest", name="High Priest", location_type="kingdom",
                 permissions=["review_accusations"], salary=80),
        ]
    )
    session.commit()


def seed_items(session: Session) -> None:
    """Seed a starter item catalog."""
    if _already_seeded(session, Item):
        return

    session.add_all(
        [
            Item(name="Bronze Dagger", type="weapon", subtype="dagger",
                 equipment_slot="weapon", atk_bonus=4, str_bonus=1, base_value=20),
            Item(name="Iron Sword", type="weapon", subtype="sword", equipment_slot="weapon",
                 atk_bonus=10, str_bonus=6, base_value=150, required_level=10),
            Item(name="Wooden Shield", type="armor", subtype="shield",
                 equipment_slot="shield", def_bonus=2, base_value=15),
            Item(name="Leather Vest", type="armor", subtype="body",
                 equipment_slot="chest", def_bonus=3, base_value=25),
            Item(name="Iron Helm", type="armor", subtype="helm", equipment_slot="head",
                 def_bonus=4, base_value=80, required_level=10, required_skill="defense"),
            Item(name="Bread", type="consumable", subtype="food", stackable=True,
                 max_stack=50, hp_bonus=3, base_value=2),
            Item(name="Stone Block", type="resource", subtype="stone", stackable=True,
                 max_stack=100, base_value=5),
            Item(name="Gold Bar", type="resource", subtype="metal", stackable=True,
                 max_stack=100, base_value=250),
            Item(name="Bronze Pickaxe", type="tool", subtype="pickaxe", base_value=30),
            Item(name="Fishing Rod", type="tool", subtype="rod", base_value=10),
        ]
    )
    session.commit()


def seed_all_catalog_data(session: Session) -> None:
    """Seed all catalog tables with base game data.

    Args:
        session: SQLAlchemy session to use for database operations
    """
    seed_crime_types(session)
    seed_event_types(session)
    seed_feature_types(session)
    seed_roles(session)
    seed_items(session)
