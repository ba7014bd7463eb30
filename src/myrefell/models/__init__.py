"""SQLAlchemy models for the Myrefell game system.

This module exports all database models and provides access to the
declarative base and seed data functions.
"""

# Base classes
from .base import Base, TimestampCreatedMixin, TimestampMixin, UTCDateTime, utc_now

# Crime and justice
from .crime import (
    Accusation,
    Bounty,
    Crime,
    CrimeType,
    CrimeWitness,
    Exile,
    JailInmate,
    Outlaw,
    Punishment,
    Trial,
)

# Festivals and tournaments
from .event import (
    Festival,
    FestivalParticipant,
    FestivalType,
    Tournament,
    TournamentCompetitor,
    TournamentMatch,
    TournamentType,
)

# Items
from .item import Item, PlayerInventory

# Players and roles
from .player import Player, PlayerRole, Role

# Religion
from .religion import (
    HqConstructionProject,
    HqFeatureType,
    PlayerFeatureBuff,
    Religion,
    ReligionHeadquarters,
    ReligionHqFeature,
    ReligionMember,
    ReligionTreasury,
    ReligionTreasuryTransaction,
)

# Treasuries
from .treasury import LocationTreasury, SalaryPayment, TaxCollection, TreasuryTransaction

# World
from .world import Barony, Kingdom, Town, Village

# Seed data
from .seed_data import (
    seed_all_catalog_data,
    seed_crime_types,
    seed_event_types,
    seed_feature_types,
    seed_items,
    seed_roles,
)

__all__ = [
    "Accusation",
    "Barony",
    "Base",
    "Bounty",
    "Crime",
    "CrimeType",
    "CrimeWitness",
    "Exile",
    "Festival",
    "FestivalParticipant",
    "FestivalType",
    "HqConstructionProject",
    "HqFeatureType",
    "Item",
    "JailInmate",
    "Kingdom",
    "LocationTreasury",
    "Outlaw",
    "Player",
    "PlayerFeatureBuff",
    "PlayerInventory",
    "PlayerRole",
    "Punishment",
    "Religion",
    "ReligionHeadquarters",
    "ReligionHqFeature",
    "ReligionMember",
    "ReligionTreasury",
    "ReligionTreasuryTransaction",
    "Role",
    "SalaryPayment",
    "TaxCollection",
    "TimestampCreatedMixin",
    "TimestampMixin",
    "Tournament",
    "TournamentCompetitor",
    "TournamentMatch",
    "TournamentType",
    "Town",
    "TreasuryTransaction",
    "Trial",
    "UTCDateTime",
    "Village",
    "seed_all_catalog_data",
    "seed_crime_types",
    "seed_event_types",
    "seed_feature_types",
    "seed_items",
    "seed_roles",
    "utc_now",
]
