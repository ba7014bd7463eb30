"""Enumerations shared by the Myrefell models and services."""

from __future__ import annotations

from enum import StrEnum


class LocationType(StrEnum):
    """Kinds of places a player can stand in or govern."""

    VILLAGE = "village"
    TOWN = "town"
    BARONY = "barony"
    KINGDOM = "kingdom"
    WILDERNESS = "wilderness"


class CourtLevel(StrEnum):
    VILLAGE = "village"
    BARONY = "barony"
    KINGDOM = "kingdom"
    CHURCH = "church"


class CrimeSeverity(StrEnum):
    MINOR = "minor"
    MODERATE = "moderate"
    MAJOR = "major"
    CAPITAL = "capital"


class CrimeStatus(StrEnum):
    UNDETECTED = "undetected"
    REPORTED = "reported"
    TRIAL_PENDING = "trial_pending"
    RESOLVED = "resolved"


class AccusationStatus(StrEnum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    FALSE_ACCUSATION = "false_accusation"
    WITHDRAWN = "withdrawn"


class ReviewDecision(StrEnum):
    """Decisions a judge can make on a pending accusation."""

    ACCEPT = "accept"
    REJECT = "reject"
    FALSE = "false"


class TrialStatus(StrEnum):
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    AWAITING_VERDICT = "awaiting_verdict"
    CONCLUDED = "concluded"
    APPEALED = "appealed"
    DISMISSED = "dismissed"


class Verdict(StrEnum):
    GUILTY = "guilty"
    NOT_GUILTY = "not_guilty"
    DISMISSED = "dismissed"


class PunishmentType(StrEnum):
    FINE = "fine"
    JAIL = "jail"
    EXILE = "exile"
    OUTLAWRY = "outlawry"
    EXECUTION = "execution"
    EXCOMMUNICATION = "excommunication"
    COMMUNITY_SERVICE = "community_service"


class PunishmentStatus(StrEnum):
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"
    PARDONED = "pardoned"
    ESCAPED = "escaped"


class CaptureType(StrEnum):
    ALIVE = "alive"
    DEAD_OR_ALIVE = "dead_or_alive"
    DEAD = "dead"


class BountyStatus(StrEnum):
    ACTIVE = "active"
    CLAIMED = "claimed"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


class OutlawStatus(StrEnum):
    ACTIVE = "active"
    CAPTURED = "captured"
    KILLED = "killed"
    PARDONED = "pardoned"
    EXPIRED = "expired"


class ExileStatus(StrEnum):
    ACTIVE = "active"
    EXPIRED = "expired"
    PARDONED = "pardoned"


class FestivalStatus(StrEnum):
    SCHEDULED = "scheduled"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ParticipantRole(StrEnum):
    ATTENDEE = "attendee"
    PERFORMER = "performer"
    VENDOR = "vendor"
    ORGANIZER = "organizer"
    COMPETITOR = "competitor"


class TournamentStatus(StrEnum):
    REGISTRATION = "registration"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class CompetitorStatus(StrEnum):
    REGISTERED = "registered"
    ACTIVE = "active"
    ELIMINATED = "eliminated"
    WINNER = "winner"
    WITHDREW = "withdrew"


class MatchStatus(StrEnum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TransactionType(StrEnum):
    """Ledger entry kinds for location treasuries."""

    TAX_INCOME = "tax_income"
    UPSTREAM_TAX = "upstream_tax"
    SALARY = "salary"
    FINE = "fine"
    DONATION = "donation"
    BOUNTY = "bounty"
    WITHDRAWAL = "withdrawal"
    DEPOSIT = "deposit"


class TaxType(StrEnum):
    INCOME = "income"
    UPSTREAM = "upstream"


class ReligionRank(StrEnum):
    PROPHET = "prophet"
    PRIEST = "priest"
    FOLLOWER = "follower"


class ReligionTransactionType(StrEnum):
    DONATION = "donation"
    UPGRADE_COST = "upgrade_cost"
    FEATURE_COST = "feature_cost"
    WITHDRAWAL = "withdrawal"
    REFUND = "refund"


class ProjectType(StrEnum):
    HQ_UPGRADE = "hq_upgrade"
    FEATURE_BUILD = "feature_build"
    FEATURE_UPGRADE = "feature_upgrade"


class ProjectStatus(StrEnum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    CONSTRUCTING = "constructing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class EquipmentSlot(StrEnum):
    HEAD = "head"
    AMULET = "amulet"
    CHEST = "chest"
    LEGS = "legs"
    WEAPON = "weapon"
    SHIELD = "shield"
    RING = "ring"
    NECKLACE = "necklace"
    BRACELET = "bracelet"


ACTIVE_PROJECT_STATUSES = (ProjectStatus.PENDING, ProjectStatus.IN_PROGRESS)
OPEN_PROJECT_STATUSES = (
    ProjectStatus.PENDING,
    ProjectStatus.IN_PROGRESS,
    ProjectStatus.CONSTRUCTING,
)
