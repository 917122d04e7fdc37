# backend/travel_crm/api/routes_itinerary.py

from fastapi import APIRouter, HTTPException, Header
from typing import Optional

from travel_crm.agents.image_agent import ImageAgent
from travel_crm.agents.itinerary_agent import ItineraryAgent
from travel_crm.api.deps import get_staff_id, http_error
from travel_crm.core.errors import TravelCRMError
from travel_crm.core.logger import logger
from travel_crm.db.request_store import RequestStore
from travel_crm.models.itinerary_models import (
    GenerateItineraryIn,
    GenerateOptionIn,
    GenerateOptionOut,
)

router = APIRouter(prefix="/api", tags=["itinerary"])

db = RequestStore()
agent = ItineraryAgent()
image_agent = ImageAgent()


def _load_request(request_id: str) -> dict:
    request = db.get_request(request_id)
    if not request:
        raise HTTPException(404, "Request not found")
    return request


# --------------------------
# Generate all three options
# --------------------------
@router.post("/generate-itinerary")
def generate_itinerary(data: GenerateItineraryIn, authorization: Optional[str] = Header(None)):
    """
    Drafts three distinct options for the request. Each option is saved as soon
    as it is ready, so a failure on a later slot keeps the earlier ones.
    """
    get_staff_id(authorization)
    request = _load_request(data.id)

    def _save(index: int, option: dict):
        db.set_option(data.id, index, option)

    try:
        options = agent.generate_all(request, on_option=_save)
    except TravelCRMError as e:
        logger.error(f"Itinerary generation failed for request {data.id}: {e}")
        raise http_error(e)

    return {"success": True, "options": options}


# --------------------------
# Generate / regenerate one option slot
# --------------------------
@router.post("/generate-single-option", response_model=GenerateOptionOut)
def generate_single_option(data: GenerateOptionIn, authorization: Optional[str] = Header(None)):
    get_staff_id(authorization)
    request = _load_request(data.id)

    try:
        option = agent.generate_option(request, data.option_index)
    except TravelCRMError as e:
        logger.error(f"Option {data.option_index} generation failed for request {data.id}: {e}")
        raise http_error(e)

    if db.set_option(data.id, data.option_index, option) is None:
        raise HTTPException(500, "Failed to save option")

    return {"success": True, "option": option, "optionIndex": data.option_index}


# --------------------------
# Replace day images with generated ones
# --------------------------
@router.post("/generate-images", response_model=GenerateOptionOut)
def generate_images(data: GenerateOptionIn, authorization: Optional[str] = Header(None)):
    get_staff_id(authorization)
    request = _load_request(data.id)

    option = request["itinerary_options"]["options"][data.option_index]
    if not isinstance(option, dict) or not isinstance(option.get("days"), list):
        raise HTTPException(404, "Option not found or invalid")

    try:
        illustrated = image_agent.illustrate(option)
    except TravelCRMError as e:
        raise http_error(e)

    # keep the current selection: only the pictures changed
    slots = list(request["itinerary_options"]["options"])
    slots[data.option_index] = illustrated
    if db.update_request(data.id, {"itinerary_options": {"options": slots}}) is None:
        raise HTTPException(500, "Failed to save generated images")

    return {"success": True, "option": illustrated, "optionIndex": data.option_index}
