from pydantic import BaseModel, Field


class DonationCreate(BaseModel):
    amount: int = Field(..., description="Gold to donate")


class FeatureBuild(BaseModel):
    feature: str = Field(..., min_length=1, description="Feature type slug (e.g. sacred-altar)")


class ProjectContribution(BaseModel):
    gold: int = Field(default=0, ge=0, description="Gold to contribute")
    devotion: int = Field(default=0, ge=0, description="Devotion to contribute")
    items: dict[str, int] = Field(
        default_factory=dict, description="Item name to quantity contributed"
    )


class TreasuryFunding(BaseModel):
    amount: int = Field(..., ge=1, description="Treasury gold to put towards the project")
