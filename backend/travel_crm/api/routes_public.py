# backend/travel_crm/api/routes_public.py

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates
from typing import Any, Dict, Optional

from travel_crm.core.config_loader import settings
from travel_crm.core.logger import logger
from travel_crm.db.request_store import RequestStore
from travel_crm.services.email_templates import TEMPLATE_DIR
from travel_crm.services.photo_catalog import PhotoCatalog
from travel_crm.utils.links import whatsapp_url
from travel_crm.utils.time_utils import current_year, format_long_date

# No auth on anything here: the public token is the credential.
router = APIRouter(tags=["public"])

db = RequestStore()
photos = PhotoCatalog()
templates = Jinja2Templates(directory=str(TEMPLATE_DIR))


def _public_request(request: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": request["id"],
        "client_name": request.get("client_name"),
        "start_date": request.get("start_date"),
        "end_date": request.get("end_date"),
        "duration": request.get("duration"),
        "selected_option": request.get("selected_option"),
    }


def _option_at(request: Dict[str, Any], option: Optional[str]) -> Optional[Dict[str, Any]]:
    """The slot named by a raw ``option`` value, or None if it is not a usable index."""
    if option is None:
        return None
    try:
        index = int(option)
    except ValueError:
        return None
    slots = request["itinerary_options"]["options"]
    if 0 <= index < len(slots):
        return slots[index]
    return None


# --------------------------
# JSON view (client-side pages, backward compatible)
# --------------------------
@router.get("/api/public-itinerary")
def public_itinerary(token: Optional[str] = None, option: Optional[str] = None):
    if not token:
        raise HTTPException(400, "Token is required")

    request = db.get_request_by_token(token)
    if not request:
        logger.warning(f"Public itinerary lookup failed for token {token}")
        raise HTTPException(404, "Itinerary not found")

    itinerary = _option_at(request, option)
    if itinerary:
        return {"request": _public_request(request), "itinerary": itinerary}

    return {"request": _public_request(request), "itineraryOptions": request["itinerary_options"]}


# --------------------------
# Server-rendered pages
# --------------------------
def _render_not_found(http_request: Request) -> HTMLResponse:
    return templates.TemplateResponse(
        http_request,
        "public/not_found.html",
        {"brand": settings.BRAND_NAME, "year": current_year()},
        status_code=404,
    )


def _render_itinerary(http_request: Request, request: Dict[str, Any], itinerary: Dict[str, Any]) -> HTMLResponse:
    link = str(http_request.url)
    context = {
        "brand": settings.BRAND_NAME,
        "year": current_year(),
        "client_name": request.get("client_name") or "Valued Client",
        "start_date": request.get("start_date") and format_long_date(request["start_date"]),
        "end_date": request.get("end_date") and format_long_date(request["end_date"]),
        "duration": request.get("duration"),
        "itinerary": itinerary,
        "destinations": photos.destinations(itinerary),
        "contact_url": whatsapp_url(
            settings.CONTACT_WHATSAPP,
            link,
            message=f"Hello! I have a question about my itinerary \"{itinerary.get('title') or ''}\": {link}",
        ),
    }
    return templates.TemplateResponse(http_request, "public/itinerary.html", context)


@router.get("/itinerary/{token}", response_class=HTMLResponse)
def itinerary_page(token: str, http_request: Request):
    """The option the client was offered (the current selection)."""
    request = db.get_request_by_token(token)
    if not request or request.get("selected_option") is None:
        return _render_not_found(http_request)

    itinerary = _option_at(request, str(request["selected_option"]))
    if not itinerary:
        return _render_not_found(http_request)
    return _render_itinerary(http_request, request, itinerary)


@router.get("/itinerary/{token}/{option}", response_class=HTMLResponse)
def itinerary_option_page(token: str, option: str, http_request: Request):
    request = db.get_request_by_token(token)
    if not request:
        return _render_not_found(http_request)

    itinerary = _option_at(request, option)
    if not itinerary:
        return _render_not_found(http_request)
    return _render_itinerary(http_request, request, itinerary)
