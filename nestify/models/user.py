from __future__ import annotations

from pydantic import BaseModel, EmailStr, Field
from enum import Enum

# ──────────────────────────────────────────────────────────────────────────────
# Enums
# ──────────────────────────────────────────────────────────────────────────────

class UserRole(str, Enum):
    ADMIN = "admin"
    TENURE = "tenure"


# ──────────────────────────────────────────────────────────────────────────────
# Signup / login payloads
# ──────────────────────────────────────────────────────────────────────────────

class AdminSignup(BaseModel):
    full_name: str = Field(..., min_length=2)
    email: EmailStr
    phone_number: str = Field(..., min_length=10)
    password: str = Field(..., min_length=6)
    hostel_name: str = Field(..., min_length=2)
    address: str = Field(..., min_length=10, description="Hostel address, stored as the hostel location")


class TenureSignup(BaseModel):
    registration_number: str = Field(..., description="Registration number issued by the hostel admin, e.g. REG-4KQ9ZT")
    email: EmailStr
    password: str = Field(..., min_length=6)
    name: str = Field(..., min_length=1)
    phone_number: str = Field(..., min_length=10)


class EmailPasswordLogin(BaseModel):
    email: EmailStr
    password: str


class PasswordChange(BaseModel):
    new_password: str = Field(..., min_length=6)

