"""Static rule tables for the Myrefell world.

Catalog rows (crime types, festival and tournament types, HQ features) are
defined here as frozen dataclasses and copied into the database by
``myrefell.models.seed_data``. Services read numeric constants straight from
this module.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from myrefell.domain.enums import CourtLevel, CrimeSeverity, LocationType

# ---------------------------------------------------------------------------
# Crime and justice
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class CrimeTypeSpec:
    slug: str
    name: str
    description: str
    severity: CrimeSeverity
    court_level: CourtLevel
    base_fine: int
    base_jail_days: int
    can_be_outlawed: bool = False
    can_be_executed: bool = False
    is_religious: bool = False


CRIME_TYPES: tuple[CrimeTypeSpec, ...] = (
    CrimeTypeSpec(
        "theft", "Theft", "Taking property that belongs to another.",
        CrimeSeverity.MINOR, CourtLevel.VILLAGE, 100, 1,
    ),
    CrimeTypeSpec(
        "assault", "Assault", "Attacking another person without lawful cause.",
        CrimeSeverity.MODERATE, CourtLevel.BARONY, 500, 7,
    ),
    CrimeTypeSpec(
        "murder", "Murder", "Unlawfully killing another person.",
        CrimeSeverity.MAJOR, CourtLevel.KINGDOM, 5000, 30,
        can_be_outlawed=True, can_be_executed=True,
    ),
    CrimeTypeSpec(
        "treason", "Treason", "Betraying the crown or plotting against the realm.",
        CrimeSeverity.CAPITAL, CourtLevel.KINGDOM, 10000, 0,
        can_be_outlawed=True, can_be_executed=True,
    ),
    CrimeTypeSpec(
        "heresy", "Heresy", "Preaching against the established faith.",
        CrimeSeverity.MODERATE, CourtLevel.CHURCH, 200, 3,
        can_be_executed=True, is_religious=True,
    ),
    CrimeTypeSpec(
        "desertion", "Desertion", "Abandoning a sworn military post.",
        CrimeSeverity.MAJOR, CourtLevel.KINGDOM, 2000, 14,
        can_be_outlawed=True,
    ),
    CrimeTypeSpec(
        "false_accusation", "False Accusation", "Knowingly accusing an innocent person.",
        CrimeSeverity.MODERATE, CourtLevel.BARONY, 300, 5,
    ),
    CrimeTypeSpec(
        "trespassing", "Trespassing", "Entering land without the owner's leave.",
        CrimeSeverity.MINOR, CourtLevel.VILLAGE, 50, 0,
    ),
    CrimeTypeSpec(
        "fraud", "Fraud", "Deceiving another for gain.",
        CrimeSeverity.MODERATE, CourtLevel.BARONY, 1000, 7,
    ),
    CrimeTypeSpec(
        "smuggling", "Smuggling", "Moving goods past the tax collectors.",
        CrimeSeverity.MODERATE, CourtLevel.BARONY, 500, 3,
    ),
)

# Role slugs that may sit in judgement at each court level.
JUDGE_ROLES: dict[CourtLevel, tuple[str, ...]] = {
    CourtLevel.VILLAGE: ("elder", "village_chief"),
    CourtLevel.BARONY: ("baron", "magistrate"),
    CourtLevel.KINGDOM: ("king", "high_judge"),
    CourtLevel.CHURCH: ("high_priest",),
}

# Courts that hear appeals from a lower court.
APPEAL_COURTS: dict[CourtLevel, CourtLevel] = {
    CourtLevel.VILLAGE: CourtLevel.BARONY,
    CourtLevel.BARONY: CourtLevel.KINGDOM,
}

PARDON_ROLES: tuple[str, ...] = ("king",)

MIN_BOUNTY_REWARD = 100
MAX_BOUNTY_REWARD = 1_000_000
BOUNTY_DURATION_DAYS = 30
OUTLAW_BOUNTY_REWARD = 1000
FINE_TO_JAIL_DIVISOR = 100
TRIAL_DELAY_DAYS = 1

# ---------------------------------------------------------------------------
# Festivals and tournaments
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FestivalTypeSpec:
    slug: str
    name: str
    description: str
    season: str
    duration_days: int
    category: str = "seasonal"
    bonuses: dict[str, int] = field(default_factory=dict)
    activities: tuple[str, ...] = ()


FESTIVAL_TYPES: tuple[FestivalTypeSpec, ...] = (
    FestivalTypeSpec(
        "planting-festival", "Planting Festival",
        "Villagers bless the fields before the sowing.",
        "spring", 3, bonuses={"farming_bonus": 10, "happiness": 5},
        activities=("blessing_of_seeds", "maypole_dance"),
    ),
    FestivalTypeSpec(
        "midsummer-fair", "Midsummer Fair",
        "A week of trade, games and music at the height of summer.",
        "summer", 7, bonuses={"trade_bonus": 15, "happiness": 10},
        activities=("market", "tournament", "feast"),
    ),
    FestivalTypeSpec(
        "harvest-festival", "Harvest Festival",
        "Thanksgiving for the gathered crops.",
        "autumn", 5, bonuses={"food_bonus": 10, "happiness": 8},
        activities=("feast", "harvest_contest"),
    ),
    FestivalTypeSpec(
        "midwinter-feast", "Midwinter Feast",
        "Fires and feasting through the longest night.",
        "winter", 3, bonuses={"happiness": 10},
        activities=("feast", "storytelling"),
    ),
)

FESTIVAL_JOIN_ROLES = ("attendee", "performer", "vendor")


@dataclass(frozen=True, slots=True)
class TournamentTypeSpec:
    slug: str
    name: str
    description: str
    combat_type: str
    primary_stat: str
    entry_fee: int
    min_level: int
    max_participants: int
    prize_distribution: dict[str, int]
    is_lethal: bool = False


TOURNAMENT_TYPES: tuple[TournamentTypeSpec, ...] = (
    TournamentTypeSpec(
        "grand-melee", "Grand Melee", "A free-for-all bout with blunted weapons.",
        "melee", "attack", 100, 5, 16, {"1st": 50, "2nd": 30, "3rd": 20},
    ),
    TournamentTypeSpec(
        "joust", "Joust", "Mounted knights tilt at one another.",
        "joust", "strength", 250, 10, 8, {"1st": 60, "2nd": 30, "3rd": 10},
    ),
    TournamentTypeSpec(
        "archery-contest", "Archery Contest", "Marksmen shoot at ever more distant targets.",
        "archery", "attack", 50, 1, 32, {"1st": 50, "2nd": 30, "3rd": 20},
    ),
    TournamentTypeSpec(
        "wrestling", "Wrestling", "Unarmed grappling in the village square.",
        "wrestling", "strength", 25, 1, 16, {"1st": 60, "2nd": 40},
    ),
    TournamentTypeSpec(
        "trial-by-combat", "Trial by Combat", "Two stand, one walks away.",
        "mixed", "combat_level", 0, 1, 2, {"1st": 100}, is_lethal=True,
    ),
)

MATCH_EXCHANGES = 3
MATCH_ROLL = "1d100"

# ---------------------------------------------------------------------------
# Taxes
# ---------------------------------------------------------------------------

DEFAULT_TAX_RATE = 10
MIN_TAX_RATE = 0
MAX_TAX_RATE = 50

TAX_PERMISSIONS: dict[LocationType, str] = {
    LocationType.BARONY: "set_taxes",
    LocationType.KINGDOM: "set_kingdom_taxes",
}

# ---------------------------------------------------------------------------
# Religion headquarters
# ---------------------------------------------------------------------------

MAX_HQ_TIER = 6

TIER_NAMES: dict[int, str] = {
    1: "Chapel",
    2: "Church",
    3: "Temple",
    4: "Cathedral",
    5: "Grand Cathedral",
    6: "Holy Sanctum",
}

# Cost to reach the tier (gold, devotion, items by name).
TIER_COSTS: dict[int, dict[str, object]] = {
    2: {"gold": 100_000, "devotion": 5_000, "items": {}},
    3: {"gold": 500_000, "devotion": 25_000, "items": {"Stone Block": 100}},
    4: {"gold": 2_000_000, "devotion": 100_000, "items": {"Stone Block": 250, "Gold Bar": 25}},
    5: {"gold": 10_000_000, "devotion": 500_000, "items": {"Stone Block": 500, "Gold Bar": 100}},
    6: {
        "gold": 50_000_000,
        "devotion": 2_000_000,
        "items": {"Stone Block": 1000, "Gold Bar": 250},
    },
}

TIER_PRAYER_REQUIREMENTS: dict[int, int] = {1: 1, 2: 15, 3: 30, 4: 50, 5: 70, 6: 90}

TIER_BONUSES: dict[int, dict[str, int]] = {
    1: {"blessing_cost": 0, "blessing_duration": 0, "devotion_gain": 0},
    2: {"blessing_cost": -5, "blessing_duration": 10, "devotion_gain": 5},
    3: {"blessing_cost": -10, "blessing_duration": 20, "devotion_gain": 10},
    4: {"blessing_cost": -15, "blessing_duration": 30, "devotion_gain": 20},
    5: {"blessing_cost": -25, "blessing_duration": 50, "devotion_gain": 35},
    6: {"blessing_cost": -40, "blessing_duration": 75, "devotion_gain": 50},
}

# Hours of construction once an HQ upgrade is fully funded, keyed by target tier.
HQ_UPGRADE_HOURS: dict[int, int] = {2: 2, 3: 6, 4: 12, 5: 24, 6: 48}

# Hours of construction for a feature, keyed by target level.
FEATURE_BUILD_HOURS: dict[int, int] = {1: 1, 2: 2, 3: 4, 4: 8, 5: 12}

HQ_LOCATION_TYPES = (
    LocationType.VILLAGE,
    LocationType.BARONY,
    LocationType.TOWN,
    LocationType.KINGDOM,
)

PRAYER_BASE_ENERGY = 25
PRAYER_ENERGY_PER_TIER = 5
PRAYER_DEVOTION_PER_LEVEL = 50
PRAYER_MINUTES_PER_LEVEL = 60


def _costs(*pairs: tuple[int, int]) -> tuple[dict[str, int], ...]:
    return tuple({"gold": gold, "devotion": devotion} for gold, devotion in pairs)


def _effects(key: str, *values: int) -> tuple[dict[str, int], ...]:
    return tuple({key: value} for value in values)


COSTS_TIER_1 = _costs(
    (10_000, 1_000), (50_000, 5_000), (150_000, 15_000), (400_000, 40_000), (1_000_000, 100_000)
)
COSTS_TIER_2 = _costs(
    (25_000, 2_500), (100_000, 10_000), (300_000, 30_000), (800_000, 80_000), (2_000_000, 200_000)
)
COSTS_TIER_2_LIBRARY = _costs(
    (30_000, 3_000), (120_000, 12_000), (360_000, 36_000), (1_000_000, 100_000),
    (2_500_000, 250_000),
)
COSTS_TIER_3 = _costs(
    (100_000, 10_000), (300_000, 30_000), (800_000, 80_000), (2_000_000, 200_000),
    (5_000_000, 500_000),
)
COSTS_TIER_4 = _costs(
    (250_000, 25_000), (750_000, 75_000), (2_000_000, 200_000), (5_000_000, 500_000),
    (12_000_000, 1_200_000),
)
COSTS_TIER_5 = _costs(
    (1_000_000, 100_000), (3_000_000, 300_000), (8_000_000, 800_000),
    (20_000_000, 2_000_000), (40_000_000, 4_000_000),
)
COSTS_TIER_6 = _costs(
    (5_000_000, 500_000), (15_000_000, 1_500_000), (40_000_000, 4_000_000),
    (80_000_000, 8_000_000), (150_000_000, 15_000_000),
)


@dataclass(frozen=True, slots=True)
class FeatureTypeSpec:
    slug: str
    name: str
    description: str
    category: str
    min_hq_tier: int
    effects: tuple[dict[str, int], ...]
    level_costs: tuple[dict[str, int], ...]
    max_level: int = 5


FEATURE_TYPES: tuple[FeatureTypeSpec, ...] = (
    FeatureTypeSpec(
        "sacred-altar", "Sacred Altar", "Devotion flows more freely to the faithful.",
        "altar", 1, _effects("devotion_bonus", 5, 10, 15, 22, 30), COSTS_TIER_1,
    ),
    FeatureTypeSpec(
        "offering-box", "Offering Box", "Donations to the faith are multiplied.",
        "vault", 1, _effects("treasury_bonus", 5, 10, 15, 22, 30), COSTS_TIER_1,
    ),
    FeatureTypeSpec(
        "prayer-candles", "Prayer Candles", "Quiet light that sharpens the herbalist's eye.",
        "shrine", 2, _effects("herblore_xp_bonus", 5, 10, 15, 22, 30), COSTS_TIER_2,
    ),
    FeatureTypeSpec(
        "scripture-hall", "Scripture Hall", "Study of the holy texts deepens prayer.",
        "library", 2, _effects("prayer_xp_bonus", 5, 10, 15, 22, 30), COSTS_TIER_2_LIBRARY,
    ),
    FeatureTypeSpec(
        "meditation-garden", "Meditation Garden", "A calm garden that speeds recovery.",
        "garden", 2, _effects("energy_recovery_bonus", 2, 4, 6, 8, 10), COSTS_TIER_2,
    ),
    FeatureTypeSpec(
        "healing-springs", "Healing Springs", "Blessed waters that mend wounds.",
        "garden", 3, _effects("hp_regen_bonus", 5, 10, 15, 20, 25), COSTS_TIER_3,
    ),
    FeatureTypeSpec(
        "relic-chamber", "Relic Chamber", "Relics that lengthen the grace of blessings.",
        "vault", 3, _effects("blessing_duration", 5, 10, 15, 20, 25), COSTS_TIER_3,
    ),
    FeatureTypeSpec(
        "divine-font", "Divine Font", "Holy water that eases the price of blessings.",
        "altar", 4, _effects("blessing_cost", -3, -6, -9, -12, -15), COSTS_TIER_4,
    ),
    FeatureTypeSpec(
        "eternal-flame", "Eternal Flame", "A fire that has never gone out.",
        "shrine", 5, _effects("devotion_gain", 5, 10, 15, 20, 25), COSTS_TIER_5,
    ),
    FeatureTypeSpec(
        "paradise-gardens", "Paradise Gardens", "Walking here restores the weary.",
        "garden", 6, _effects("energy_restore", 10, 20, 30, 40, 50), COSTS_TIER_6,
    ),
)

# ---------------------------------------------------------------------------
# Inventory and travel
# ---------------------------------------------------------------------------

MAX_INVENTORY_SLOTS = 28

TRAVEL_DISTANCE_DIVISOR = 10
TRAVEL_ENERGY_COST = 5
MAX_TRAVEL_DISTANCE = 100
MIN_TRAVEL_SECONDS = 60
AGILITY_BONUS_PER_LEVEL = 0.005
MAX_AGILITY_BONUS = 0.25
