# backend/travel_crm/api/routes_requests.py

from fastapi import APIRouter, HTTPException, Header
from typing import Optional

from travel_crm.api.deps import get_staff_id, http_error
from travel_crm.core.errors import InvalidOptionError
from travel_crm.core.logger import logger
from travel_crm.db.request_store import RequestStore
from travel_crm.models.request_models import (
    RequestCreate,
    RequestOut,
    RequestStatus,
    RequestUpdate,
    SelectOptionIn,
    ShareLinksOut,
)
from travel_crm.utils.links import itinerary_url, mailto_url, whatsapp_url

router = APIRouter(prefix="/requests", tags=["requests"])
db = RequestStore()


def _get_or_404(request_id: str) -> dict:
    request = db.get_request(request_id)
    if not request:
        raise HTTPException(404, "Request not found")
    return request


# --------------------------
# Create request
# --------------------------
@router.post("", response_model=RequestOut, status_code=201)
def create_request(data: RequestCreate, authorization: Optional[str] = Header(None)):
    get_staff_id(authorization)
    return db.create_request(data.model_dump())


# --------------------------
# List requests (dashboard)
# --------------------------
@router.get("", response_model=list[RequestOut])
def list_requests(
    status: Optional[RequestStatus] = None,
    limit: int = 200,
    authorization: Optional[str] = Header(None),
):
    get_staff_id(authorization)
    return db.list_requests(status=status, limit=max(1, min(limit, 500)))


# --------------------------
# Request details
# --------------------------
@router.get("/{request_id}", response_model=RequestOut)
def get_request(request_id: str, authorization: Optional[str] = Header(None)):
    get_staff_id(authorization)
    return _get_or_404(request_id)


# --------------------------
# Update status / notes / trip details
# --------------------------
@router.patch("/{request_id}", response_model=RequestOut)
def update_request(request_id: str, data: RequestUpdate, authorization: Optional[str] = Header(None)):
    get_staff_id(authorization)
    _get_or_404(request_id)

    fields = data.model_dump(exclude_unset=True)
    if not fields:
        raise HTTPException(400, "Nothing to update")

    return db.update_request(request_id, fields)


# --------------------------
# Select option (mints the public link token)
# --------------------------
@router.post("/{request_id}/select", response_model=RequestOut)
def select_option(request_id: str, data: SelectOptionIn, authorization: Optional[str] = Header(None)):
    get_staff_id(authorization)
    _get_or_404(request_id)

    try:
        updated = db.select_option(request_id, data.option_index)
    except InvalidOptionError as e:
        raise http_error(e)

    logger.info(f"Request {request_id}: option {data.option_index} selected")
    return updated


# --------------------------
# Cancel / reopen trip
# --------------------------
@router.post("/{request_id}/cancel", response_model=RequestOut)
def cancel_trip(request_id: str, authorization: Optional[str] = Header(None)):
    get_staff_id(authorization)
    _get_or_404(request_id)
    return db.update_request(request_id, {"status": "cancelled"})


@router.post("/{request_id}/reopen", response_model=RequestOut)
def reopen_trip(request_id: str, authorization: Optional[str] = Header(None)):
    get_staff_id(authorization)
    _get_or_404(request_id)
    return db.update_request(request_id, {"status": "follow_up"})


# --------------------------
# Delete request
# --------------------------
@router.delete("/{request_id}")
def delete_request(request_id: str, authorization: Optional[str] = Header(None)):
    get_staff_id(authorization)
    if not db.delete_request(request_id):
        raise HTTPException(404, "Request not found")
    return {"ok": True, "message": "Request deleted"}


# --------------------------
# Share links (mailto / WhatsApp)
# --------------------------
@router.get("/{request_id}/share", response_model=ShareLinksOut)
def share_links(request_id: str, authorization: Optional[str] = Header(None)):
    get_staff_id(authorization)
    request = _get_or_404(request_id)

    if not request.get("public_token") or request.get("selected_option") is None:
        raise HTTPException(400, "Please select an itinerary option first to generate a shareable link.")

    link = itinerary_url(request["public_token"], request["selected_option"])
    return {
        "itinerary_url": link,
        "mailto_url": mailto_url(request.get("email"), request.get("client_name"), link),
        "whatsapp_url": whatsapp_url(request.get("whatsapp"), link),
    }
