# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Request / Response schemas — API contract definitions.
Field rules shared with the service layer live here too.
"""

import re
from typing import Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

REGISTERABLE_ROLES = ("user", "agency", "volunteer")
LOGIN_ROLES = ("user", "admin", "agency", "volunteer")
PROFILE_FIELDS = ("name", "email", "phone_number", "address", "country", "city", "pin_code")

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_RE = re.compile(r"^\d{3}-\d{3}-\d{4}$")
PASSWORD_RE = re.compile(r"^(?=.*\d)(?=.*[!@#$%^&*]).{8,}$")
PIN_CODE_RE = re.compile(r"^\d{5,6}$")


def normalise_email(v: str) -> str:
    v = v.strip().lower()
    if not EMAIL_RE.match(v):
        raise ValueError("Invalid email format")
    return v


def check_phone_number(v: str) -> str:
    v = v.strip()
    if not PHONE_RE.match(v):
        raise ValueError("Invalid phone number format. Use format: 123-456-7890")
    return v


def check_password(v: str) -> str:
    v = v.strip()
    if not PASSWORD_RE.match(v):
        raise ValueError(
            "Password must be at least 8 characters long and include "
            "at least 1 number and 1 special character"
        )
    return v


def check_pin_code(v: str) -> str:
    v = v.strip()
    if not PIN_CODE_RE.match(v):
        raise ValueError("Invalid pin code format. Must be a 5 or 6 digit number")
    return v


def _not_blank(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("must not be empty")
    return v


# ── Emergency Schemas ──

class EmergencyCreate(BaseModel):
    title: str = Field(..., max_length=500)
    description: str = Field(..., max_length=5000)
    reporter: str = Field(
        ..., max_length=255, validation_alias=AliasChoices("reporter", "user"),
    )

    @field_validator("title", "description", "reporter")
    @classmethod
    def strip_required(cls, v: str) -> str:
        return _not_blank(v)


class VolunteerAction(BaseModel):
    """Body of accept / decline. ``volunteer`` is the legacy key."""
    volunteer_name: str = Field(
        ...,
        max_length=255,
        validation_alias=AliasChoices("volunteerName", "volunteer_name", "volunteer"),
    )

    @field_validator("volunteer_name")
    @classmethod
    def strip_required(cls, v: str) -> str:
        return _not_blank(v)


class EmergencyOut(BaseModel):
    id: str
    title: str
    description: str
    reporter: str
    status: str
    volunteers: list[str]
    created_at: str


class EmergencyStats(BaseModel):
    total: int
    pending: int
    accepted: int
    volunteers_engaged: int


# ── Account Schemas ──

class RegisterRequest(BaseModel):
    role: Literal["user", "agency", "volunteer"]
    name: str = Field(..., max_length=255)
    phone_number: str = Field(..., validation_alias=AliasChoices("phone_number", "phoneNumber"))
    address: str = Field(..., max_length=500)
    email: str = Field(..., max_length=255)
    password: str = Field(..., max_length=72)
    country: str = Field(..., max_length=100)
    city: str = Field(..., max_length=100)
    pin_code: str = Field(..., validation_alias=AliasChoices("pin_code", "pinCode"))

    @field_validator("name", "address", "country", "city")
    @classmethod
    def strip_required(cls, v: str) -> str:
        return _not_blank(v)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return normalise_email(v)

    @field_validator("phone_number")
    @classmethod
    def validate_phone(cls, v: str) -> str:
        return check_phone_number(v)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return check_password(v)

    @field_validator("pin_code")
    @classmethod
    def validate_pin_code(cls, v: str) -> str:
        return check_pin_code(v)


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1, description="Email or phone number")
    password: str = Field(..., min_length=1)
    role: Literal["user", "admin", "agency", "volunteer"]


class AccountOut(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    name: str
    email: str
    phone_number: Optional[str] = None
    address: Optional[str] = None
    country: Optional[str] = None
    city: Optional[str] = None
    pin_code: Optional[str] = None


# ── Upstream proxy Schemas ──

class PredictRequest(BaseModel):
    """Feature payload forwarded as-is; only ``prediction_type`` is interpreted."""
    model_config = ConfigDict(extra="allow")

    prediction_type: Literal["flood", "drought"] = "flood"


class ChatRequest(BaseModel):
    message: str = Field(..., max_length=4000)

    @field_validator("message")
    @classmethod
    def strip_required(cls, v: str) -> str:
        return _not_blank(v)


class ChatResponse(BaseModel):
    response: str

