from pydantic import BaseModel, Field

from myrefell.domain.enums import LocationType


class TaxRateUpdate(BaseModel):
    location_type: LocationType = Field(..., description="barony or kingdom")
    location_id: int = Field(..., description="Location whose rate is set")
    tax_rate: float = Field(..., description="New rate in percent")
