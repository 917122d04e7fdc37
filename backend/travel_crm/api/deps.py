# backend/travel_crm/api/deps.py

from fastapi import HTTPException
from typing import Optional

from travel_crm.core.errors import (
    EmailDeliveryError,
    InvalidEmailError,
    InvalidOptionError,
    TravelCRMError,
)
from travel_crm.core.security import decode_token


# --------------------------
# Extract staff ID from the bearer token
# --------------------------
def get_staff_id(authorization: Optional[str]) -> int:
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(401, "Missing or invalid token")
    payload = decode_token(authorization.split(" ", 1)[1])
    if not payload or "sub" not in payload:
        raise HTTPException(401, "Invalid token")
    return int(payload["sub"])


# --------------------------
# Domain error -> HTTP error
# --------------------------
def http_error(exc: TravelCRMError) -> HTTPException:
    if isinstance(exc, (InvalidOptionError, InvalidEmailError)):
        return HTTPException(400, str(exc))
    if isinstance(exc, EmailDeliveryError):
        return HTTPException(500, {"error": str(exc), "details": exc.details})
    return HTTPException(500, str(exc) or "An unexpected error occurred")
