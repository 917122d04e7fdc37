# backend/travel_crm/api/routes_auth.py

from fastapi import APIRouter, HTTPException, Header
from typing import Optional

from travel_crm.api.deps import get_staff_id
from travel_crm.core.config_loader import settings
from travel_crm.core.logger import logger
from travel_crm.core.security import (
    get_password_hash,
    verify_password,
    create_access_token,
)
from travel_crm.db.request_store import RequestStore
from travel_crm.models.user_models import LoginIn, MeOut, RegisterIn, TokenOut

router = APIRouter(prefix="/auth", tags=["auth"])
db = RequestStore()


def _token_for(staff_id: int) -> dict:
    return {
        "access_token": create_access_token(subject=str(staff_id)),
        "expires_in": settings.access_token_expire_minutes * 60,
    }


# --------------------------
# BOOTSTRAP
# --------------------------
def ensure_admin_account(store: Optional[RequestStore] = None):
    """Create the first staff login from ADMIN_EMAIL / ADMIN_PASSWORD on an empty store."""
    store = store or db
    if not settings.ADMIN_EMAIL or not settings.ADMIN_PASSWORD:
        return
    if store.count_staff() > 0:
        return

    store.create_staff(settings.ADMIN_EMAIL, "Administrator", get_password_hash(settings.ADMIN_PASSWORD))
    logger.info(f"Created bootstrap staff account {settings.ADMIN_EMAIL}")


# --------------------------
# LOGIN
# --------------------------
@router.post("/login", response_model=TokenOut)
def login(data: LoginIn):
    staff = db.get_staff_by_email(data.email)
    if not staff or not verify_password(data.password, staff["hashed_password"]):
        logger.warning(f"Failed login for {data.email}")
        raise HTTPException(401, "Invalid credentials")

    return _token_for(staff["id"])


# --------------------------
# REGISTER (staff only)
# --------------------------
@router.post("/register", response_model=MeOut)
def register(data: RegisterIn, authorization: Optional[str] = Header(None)):
    get_staff_id(authorization)

    if db.get_staff_by_email(data.email):
        raise HTTPException(400, "Email already registered")

    staff_id = db.create_staff(
        email=data.email,
        full_name=data.full_name or "",
        hashed_password=get_password_hash(data.password),
    )
    staff = db.get_staff_by_id(staff_id)
    return {"id": staff["id"], "email": staff["email"], "full_name": staff["full_name"]}


# --------------------------
# ME
# --------------------------
@router.get("/me", response_model=MeOut)
def me(authorization: Optional[str] = Header(None)):
    staff_id = get_staff_id(authorization)

    staff = db.get_staff_by_id(staff_id)
    if not staff:
        raise HTTPException(404, "User not found")

    return {"id": staff["id"], "email": staff["email"], "full_name": staff["full_name"]}


# --------------------------
# REFRESH (called by the dashboard while the user is active)
# --------------------------
@router.post("/refresh", response_model=TokenOut)
def refresh(authorization: Optional[str] = Header(None)):
    staff_id = get_staff_id(authorization)
    if not db.get_staff_by_id(staff_id):
        raise HTTPException(401, "Invalid token")
    return _token_for(staff_id)
