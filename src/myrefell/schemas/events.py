from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from myrefell.domain.enums import ParticipantRole


class FestivalJoin(BaseModel):
    role: ParticipantRole = Field(
        default=ParticipantRole.ATTENDEE, description="attendee/performer/vendor"
    )


class FestivalRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    festival_type_id: int
    location_type: str
    location_id: int
    name: str
    status: str
    starts_at: datetime
    ends_at: datetime
    attendance_count: int


class ParticipantRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    festival_id: int
    player_id: int
    role: str


class CompetitorRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    tournament_id: int
    player_id: int
    seed: int | None
    status: str
    wins: int
    losses: int
    final_placement: int | None
    prize_won: int
