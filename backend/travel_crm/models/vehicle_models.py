# backend/travel_crm/models/vehicle_models.py

from datetime import date
from pydantic import BaseModel
from typing import List


VEHICLES = ["Toyota Voxy"]


class ReservationToggleIn(BaseModel):
    vehicle: str
    date: date


class ReservationToggleOut(BaseModel):
    vehicle: str
    date: str
    reserved: bool


class ReservationsOut(BaseModel):
    vehicle: str
    month: str
    dates: List[str]
