# backend/travel_crm/models/itinerary_models.py

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Optional


OPTION_SLOTS = 3


class Day(BaseModel):
    model_config = ConfigDict(extra="ignore")

    day: int
    title: str = ""
    location: str = ""
    image: Optional[str] = None
    activities: List[str] = []
    what_to_expect: Optional[str] = None
    optional_activities: List[str] = []


class ItineraryOption(BaseModel):
    model_config = ConfigDict(extra="ignore")

    title: str
    summary: str
    days: List[Day]


class ItineraryOptions(BaseModel):
    """Always exactly three slots; an empty slot is null."""
    options: List[Optional[ItineraryOption]] = Field(default_factory=lambda: [None] * OPTION_SLOTS)

    @field_validator("options", mode="before")
    @classmethod
    def _pad_slots(cls, value):
        slots = list(value or [])[:OPTION_SLOTS]
        while len(slots) < OPTION_SLOTS:
            slots.append(None)
        return slots


# -------------------------
# Generation requests
# -------------------------
class GenerateItineraryIn(BaseModel):
    id: str = Field(min_length=1)


class GenerateOptionIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(min_length=1)
    option_index: int = Field(alias="optionIndex", ge=0, le=OPTION_SLOTS - 1)


class GenerateOptionOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    option: ItineraryOption
    option_index: int = Field(alias="optionIndex")
