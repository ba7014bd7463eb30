from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from myrefell.domain.enums import CaptureType, PunishmentType, ReviewDecision, Verdict


class AccusationCreate(BaseModel):
    accused_id: int = Field(..., description="Player being accused")
    crime_type: str = Field(..., min_length=1, description="Crime type slug (e.g. theft)")
    accusation_text: str = Field(..., min_length=1, description="What the accused did")
    evidence: dict[str, Any] | None = Field(None, description="Optional supporting evidence")
    crime_id: int | None = Field(None, description="Recorded crime this accusation concerns")


class AccusationReview(BaseModel):
    decision: ReviewDecision = Field(..., description="accept/reject/false")
    notes: str | None = Field(None, description="Reviewer notes")


class AccusationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    crime_id: int | None
    accuser_id: int
    accused_id: int
    location_type: str
    location_id: int
    accusation_text: str
    status: str
    reviewed_by: int | None
    review_notes: str | None
    reviewed_at: datetime | None


class DefenseSubmit(BaseModel):
    argument: str = Field(..., min_length=1, description="The defendant's argument")


class PunishmentOrder(BaseModel):
    type: PunishmentType = Field(..., description="Kind of punishment")
    fine_amount: int | None = Field(None, ge=0, description="Gold fine (defaults to base fine)")
    jail_days: int | None = Field(None, ge=0, description="Days in jail (defaults to base days)")
    exile_from_type: str | None = Field(None, description="Location type exiled from")
    exile_from_id: int | None = Field(None, description="Location exiled from")
    community_service_hours: int | None = Field(None, ge=0)
    notes: str | None = None


class VerdictCreate(BaseModel):
    verdict: Verdict = Field(..., description="guilty/not_guilty/dismissed")
    reasoning: str = Field(..., min_length=1, description="The judge's reasoning")
    punishments: list[PunishmentOrder] = Field(default_factory=list)


class PunishmentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    trial_id: int | None
    criminal_id: int
    type: str
    fine_amount: int | None
    jail_days: int | None
    exile_from_type: str | None
    exile_from_id: int | None
    status: str
    starts_at: datetime | None
    ends_at: datetime | None
    notes: str | None


class TrialRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    crime_id: int
    accusation_id: int | None
    appeal_of_id: int | None
    defendant_id: int
    judge_id: int | None
    court_level: str
    location_type: str
    location_id: int
    status: str
    defense_argument: str | None
    verdict: str | None
    verdict_reasoning: str | None
    scheduled_at: datetime | None
    concluded_at: datetime | None
    punishments: list[PunishmentRead] = []


class BountyCreate(BaseModel):
    target_id: int = Field(..., description="Player the bounty is on")
    reward_amount: int = Field(..., description="Gold paid to whoever claims the bounty")
    capture_type: CaptureType = Field(default=CaptureType.DEAD_OR_ALIVE)
    reason: str = Field(default="", description="Why the bounty was posted")


class BountyRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    target_id: int
    posted_by: int | None
    poster_type: str
    poster_location_id: int | None
    reward_amount: int
    capture_type: str
    reason: str
    status: str
    claimed_by: int | None
    claimed_at: datetime | None
    expires_at: datetime | None


class PardonRequest(BaseModel):
    notes: str | None = Field(None, description="Reason for the pardon")


class CrimeTypeRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    slug: str
    name: str
    description: str | None
    severity: str
    court_level: str
