# backend/travel_crm/api/routes_vehicles.py

import re
from fastapi import APIRouter, HTTPException, Header
from typing import Optional

from travel_crm.api.deps import get_staff_id
from travel_crm.core.logger import logger
from travel_crm.db.request_store import RequestStore
from travel_crm.models.vehicle_models import (
    VEHICLES,
    ReservationsOut,
    ReservationToggleIn,
    ReservationToggleOut,
)

router = APIRouter(prefix="/vehicle-reservations", tags=["vehicles"])
db = RequestStore()

MONTH_PATTERN = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")


def _check_vehicle(vehicle: str):
    if vehicle not in VEHICLES:
        raise HTTPException(400, f"Unknown vehicle: {vehicle}")


# --------------------------
# Calendar for one vehicle
# --------------------------
@router.get("", response_model=ReservationsOut)
def list_reservations(
    vehicle: str = VEHICLES[0],
    month: Optional[str] = None,
    authorization: Optional[str] = Header(None),
):
    get_staff_id(authorization)
    _check_vehicle(vehicle)
    if month is not None and not MONTH_PATTERN.match(month):
        raise HTTPException(400, "Month must be in YYYY-MM format")

    return {
        "vehicle": vehicle,
        "month": month or "",
        "dates": db.list_reservations(vehicle, month),
    }


# --------------------------
# Click on a day: reserve / release
# --------------------------
@router.post("/toggle", response_model=ReservationToggleOut)
def toggle_reservation(data: ReservationToggleIn, authorization: Optional[str] = Header(None)):
    staff_id = get_staff_id(authorization)
    _check_vehicle(data.vehicle)

    day = data.date.isoformat()
    reserved = db.toggle_reservation(data.vehicle, day)
    logger.info(f"Staff {staff_id} {'reserved' if reserved else 'released'} {data.vehicle} on {day}")
    return {"vehicle": data.vehicle, "date": day, "reserved": reserved}
