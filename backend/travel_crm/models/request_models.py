# backend/travel_crm/models/request_models.py

from datetime import date
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from typing import Any, Dict, List, Literal, Optional

from travel_crm.models.itinerary_models import ItineraryOptions


RequestStatus = Literal["new", "follow_up", "sold", "after_sales", "cancelled"]


# -------------------------
# Create (dashboard "New Request" form)
# -------------------------
class RequestCreate(BaseModel):
    client_name: str = Field(min_length=1)
    email: EmailStr
    whatsapp: Optional[str] = None
    travel_dates: Optional[str] = None   # free text, e.g. "mid March"
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    duration: Optional[int] = Field(default=None, ge=1)
    origin_country: Optional[str] = None

    number_of_adults: Optional[int] = Field(default=None, ge=0)
    number_of_children: Optional[int] = Field(default=None, ge=0)
    children_ages: Optional[List[int]] = None

    additional_preferences: Optional[str] = None
    details: Optional[str] = None
    status: RequestStatus = "new"

    @field_validator("client_name", mode="before")
    @classmethod
    def _strip_name(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator(
        "whatsapp", "travel_dates", "origin_country", "additional_preferences", "details",
        mode="before",
    )
    @classmethod
    def _blank_to_none(cls, value):
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value


# -------------------------
# Partial update (status / notes / trip fields)
# -------------------------
class RequestUpdate(BaseModel):
    client_name: Optional[str] = None
    email: Optional[EmailStr] = None
    whatsapp: Optional[str] = None
    travel_dates: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    duration: Optional[int] = Field(default=None, ge=1)
    origin_country: Optional[str] = None
    number_of_adults: Optional[int] = Field(default=None, ge=0)
    number_of_children: Optional[int] = Field(default=None, ge=0)
    children_ages: Optional[List[int]] = None
    additional_preferences: Optional[str] = None
    details: Optional[str] = None
    status: Optional[RequestStatus] = None
    notes: Optional[str] = None

    # omitted means unchanged; these two can never be cleared
    @field_validator("client_name", "email")
    @classmethod
    def _not_null(cls, value):
        if value is None:
            raise ValueError("cannot be null")
        return value


class SelectOptionIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    option_index: int = Field(alias="optionIndex", ge=0, le=2)


# -------------------------
# Read model
# -------------------------
class RequestOut(BaseModel):
    id: str
    client_name: Optional[str]
    email: Optional[str]
    whatsapp: Optional[str] = None
    travel_dates: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    duration: Optional[int] = None
    origin_country: Optional[str] = None
    number_of_adults: Optional[int] = None
    number_of_children: Optional[int] = None
    children_ages: List[int] = []
    additional_preferences: Optional[str] = None
    details: Optional[str] = None

    itinerary_options: ItineraryOptions = Field(default_factory=ItineraryOptions)
    selected_option: Optional[int] = None
    public_token: Optional[str] = None
    status: Optional[str] = None
    notes: Optional[str] = None

    sent_at: Optional[str] = None
    last_sent_at: Optional[str] = None
    last_sent_option: Optional[int] = None
    email_sent_count: int = 0
    sent_options: List[Dict[str, Any]] = []
    follow_up_emails_sent: List[Dict[str, Any]] = []

    created_at: str
    updated_at: Optional[str] = None


class ShareLinksOut(BaseModel):
    itinerary_url: str
    mailto_url: str
    whatsapp_url: Optional[str] = None
