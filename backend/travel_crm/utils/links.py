# backend/travel_crm/utils/links.py

import re
from typing import Optional
from urllib.parse import quote

from travel_crm.core.config_loader import settings


def itinerary_url(public_token: str, option_index: int) -> str:
    """Every option gets its own link, so a resent option keeps a stable URL."""
    base = settings.PUBLIC_BASE_URL.rstrip("/")
    return f"{base}/itinerary/{public_token}/{option_index}"


def mailto_url(email: Optional[str], client_name: Optional[str], link: str) -> str:
    brand = settings.BRAND_NAME
    subject = f"Your {brand} Sri Lanka Itinerary"
    body = (
        f"Dear {client_name or 'Valued Client'},\n\n"
        "We are delighted to share your personalized Sri Lanka itinerary with you.\n\n"
        f"View your itinerary here: {link}\n\n"
        "This link provides access to your selected itinerary option. If you have any questions "
        "or would like to discuss modifications, please don't hesitate to reach out.\n\n"
        "We look forward to creating an unforgettable experience for you in Sri Lanka.\n\n"
        f"Best regards,\n{brand} Team"
    )
    return f"mailto:{email or ''}?subject={quote(subject)}&body={quote(body)}"


def whatsapp_url(number: Optional[str], link: str, message: Optional[str] = None) -> Optional[str]:
    digits = re.sub(r"[^0-9]", "", number or "")
    if not digits:
        return None
    message = message or f"Your personalized {settings.BRAND_NAME} Sri Lanka itinerary is ready! View it here: {link}"
    return f"https://wa.me/{digits}?text={quote(message)}"
