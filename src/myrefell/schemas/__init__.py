from .crime import (
    AccusationCreate,
    AccusationRead,
    AccusationReview,
    BountyCreate,
    BountyRead,
    CrimeTypeRead,
    DefenseSubmit,
    PardonRequest,
    PunishmentOrder,
    PunishmentRead,
    TrialRead,
    VerdictCreate,
)
from .events import CompetitorRead, FestivalJoin, FestivalRead, ParticipantRead
from .inventory import SlotAction, SlotDrop, SlotMove
from .religion import DonationCreate, FeatureBuild, ProjectContribution, TreasuryFunding
from .taxes import TaxRateUpdate
from .travel import TravelStart

__all__ = [
    "AccusationCreate",
    "AccusationRead",
    "AccusationReview",
    "BountyCreate",
    "BountyRead",
    "CompetitorRead",
    "CrimeTypeRead",
    "DefenseSubmit",
    "DonationCreate",
    "FeatureBuild",
    "FestivalJoin",
    "FestivalRead",
    "ParticipantRead",
    "PardonRequest",
    "ProjectContribution",
    "PunishmentOrder",
    "PunishmentRead",
    "SlotAction",
    "SlotDrop",
    "SlotMove",
    "TaxRateUpdate",
    "TravelStart",
    "TreasuryFunding",
    "TrialRead",
    "VerdictCreate",
]
