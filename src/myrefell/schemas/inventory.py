from pydantic import BaseModel, Field


class SlotMove(BaseModel):
    from_slot: int = Field(..., description="Slot to move from")
    to_slot: int = Field(..., description="Slot to move to")


class SlotDrop(BaseModel):
    slot: int = Field(..., description="Slot to drop from")
    quantity: int | None = Field(None, description="How many to drop (default: the whole stack)")


class SlotAction(BaseModel):
    slot: int = Field(..., description="Slot holding the item")
