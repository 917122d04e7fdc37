# backend/travel_crm/models/email_models.py

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class SendItineraryIn(BaseModel):
    id: str = Field(min_length=1)


class TemplateEmailIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    request_id: str = Field(alias="requestId", min_length=1)
    template_id: str = Field(alias="templateId", min_length=1)
    subject: Optional[str] = None
    body: Optional[str] = None


class SentOption(BaseModel):
    option_index: int
    sent_at: str
    option_title: str
    itinerary_url: str


class FollowUpLogEntry(BaseModel):
    sent_at: str
    template_id: str
    template_name: str
    subject: str


class EmailTemplateOut(BaseModel):
    id: str
    name: str
    subject: str
