from pydantic import BaseModel, Field

from myrefell.domain.enums import LocationType


class TravelStart(BaseModel):
    destination_type: LocationType = Field(..., description="Kind of destination")
    destination_id: int = Field(..., description="Destination ID")
