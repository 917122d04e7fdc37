# backend/travel_crm/api/routes_email.py

import sqlite3
from fastapi import APIRouter, HTTPException, Header
from typing import Optional

from travel_crm.api.deps import get_staff_id, http_error
from travel_crm.core.errors import EmailDeliveryError, EmailNotConfiguredError, InvalidEmailError
from travel_crm.core.logger import logger
from travel_crm.db.request_store import RequestStore
from travel_crm.models.email_models import (
    EmailTemplateOut,
    FollowUpLogEntry,
    SendItineraryIn,
    TemplateEmailIn,
)
from travel_crm.services.email_service import EmailService
from travel_crm.services.email_templates import (
    FOLLOW_UP_TEMPLATES,
    get_template,
    render_follow_up_email,
    render_itinerary_email,
    template_subject,
)
from travel_crm.utils.links import itinerary_url
from travel_crm.utils.time_utils import utc_now_iso

router = APIRouter(prefix="/api", tags=["email"])

db = RequestStore()
email_service = EmailService()


# --------------------------
# Send the selected itinerary link to the client
# --------------------------
@router.post("/send-itinerary")
def send_itinerary(data: SendItineraryIn, authorization: Optional[str] = Header(None)):
    get_staff_id(authorization)

    request = db.get_request(data.id)
    if not request:
        raise HTTPException(404, "Failed to fetch request details")

    selected = request.get("selected_option")
    if selected is None:
        raise HTTPException(400, "No itinerary option selected")
    if not request.get("public_token"):
        raise HTTPException(400, "Public token not found. Please select an option first.")
    if not request.get("email"):
        raise HTTPException(400, "Client email not found")

    slots = request["itinerary_options"]["options"]
    option = slots[selected] if 0 <= selected < len(slots) else None
    if not option:
        raise HTTPException(400, "Selected itinerary option not found")

    link = itinerary_url(request["public_token"], selected)
    email = render_itinerary_email(request, option, link)

    try:
        email_service.verify()
        email_service.send(request["email"], email)
    except (EmailNotConfiguredError, EmailDeliveryError, InvalidEmailError) as e:
        raise http_error(e)

    # the client already has the email at this point
    try:
        db.record_itinerary_send(data.id, selected, option.get("title") or "", link)
    except sqlite3.Error as e:
        logger.error(f"Error updating request {data.id} after email send: {e}")
        return {
            "success": True,
            "warning": "Email sent but failed to update database. Please update manually.",
        }

    return {"success": True, "message": "Itinerary sent successfully", "itinerary_url": link}


# --------------------------
# Follow-up templates
# --------------------------
@router.get("/email-templates", response_model=list[EmailTemplateOut])
def list_email_templates(authorization: Optional[str] = Header(None)):
    get_staff_id(authorization)
    return [
        {"id": t.id, "name": t.name, "subject": template_subject(t)}
        for t in FOLLOW_UP_TEMPLATES
    ]


@router.post("/send-template-email")
def send_template_email(data: TemplateEmailIn, authorization: Optional[str] = Header(None)):
    get_staff_id(authorization)

    template = get_template(data.template_id)
    if not template:
        raise HTTPException(400, "Invalid template ID")

    request = db.get_request(data.request_id)
    if not request:
        raise HTTPException(404, "Request not found")
    if not request.get("email"):
        raise HTTPException(400, "Client email not found")

    link = None
    if request.get("public_token") and request.get("selected_option") is not None:
        link = itinerary_url(request["public_token"], request["selected_option"])

    email = render_follow_up_email(
        template,
        client_name=request.get("client_name") or "Valued Client",
        itinerary_url=link,
        subject=data.subject,
        body=data.body,
    )

    try:
        email_service.verify()
        email_service.send(request["email"], email)
    except (EmailNotConfiguredError, EmailDeliveryError, InvalidEmailError) as e:
        raise http_error(e)

    try:
        db.append_follow_up(data.request_id, FollowUpLogEntry(
            sent_at=utc_now_iso(),
            template_id=template.id,
            template_name=template.name,
            subject=email.subject,
        ).model_dump())
    except sqlite3.Error as e:
        logger.error(f"Error logging follow-up for request {data.request_id}: {e}")
        return {
            "success": True,
            "warning": "Email sent but failed to update database. Please update manually.",
        }

    return {"success": True, "message": "Follow-up email sent successfully"}
