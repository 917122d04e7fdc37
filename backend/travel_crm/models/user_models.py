# backend/travel_crm/models/user_models.py

from pydantic import BaseModel, EmailStr, Field
from typing import Optional


# -------------------------
# Staff registration (by an existing staff member)
# -------------------------
class RegisterIn(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)
    full_name: Optional[str] = None


# -------------------------
# Login model
# -------------------------
class LoginIn(BaseModel):
    email: EmailStr
    password: str


# -------------------------
# Token response
# -------------------------
class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int


# -------------------------
# Basic staff info
# -------------------------
class MeOut(BaseModel):
    id: int
    email: EmailStr
    full_name: Optional[str]
