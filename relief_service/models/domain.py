# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Domain models — pure data structures, NO FastAPI dependency.
"""

from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, computed_field, field_validator

STATUS_PENDING = "pending"
STATUS_ACCEPTED = "accepted"
VALID_STATUSES = (STATUS_PENDING, STATUS_ACCEPTED)

COLLECTIONS = ("emergencies", "users", "admins", "volunteers", "agencies")

# role -> collection holding that role's accounts
ROLE_COLLECTIONS: dict[str, str] = {
    "user": "users",
    "admin": "admins",
    "volunteer": "volunteers",
    "agency": "agencies",
}

# camelCase keys written by older clients -> stored field name
LEGACY_ACCOUNT_KEYS: dict[str, str] = {
    "phoneNumber": "phone_number",
    "pinCode": "pin_code",
}


class Emergency(BaseModel):
    """A reported incident. ``status`` is always derived from ``volunteers``."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    description: str
    reporter: str = Field(validation_alias=AliasChoices("reporter", "user"))
    volunteers: list[str] = Field(default_factory=list)
    created_at: str = Field(
        validation_alias=AliasChoices("created_at", "createdAt", "timestamp"),
    )

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> str:
        # older data files stored numeric ids
        return str(v)

    @computed_field
    @property
    def status(self) -> str:
        return STATUS_ACCEPTED if self.volunteers else STATUS_PENDING


class Account(BaseModel):
    """A stored account record of any role. Admins carry no contact fields."""

    model_config = ConfigDict(extra="allow")

    id: str
    name: str
    email: str
    password: str
    phone_number: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("phone_number", "phoneNumber"),
    )
    address: Optional[str] = None
    country: Optional[str] = None
    city: Optional[str] = None
    pin_code: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("pin_code", "pinCode"),
    )

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> str:
        return str(v)

    def public(self) -> dict[str, Any]:
        """Record without the password hash, for responses."""
        return self.model_dump(exclude={"password", *LEGACY_ACCOUNT_KEYS}, exclude_none=True)


class Document(BaseModel):
    """Typed view of the whole persisted aggregate."""

    model_config = ConfigDict(extra="allow")

    emergencies: list[dict[str, Any]] = Field(default_factory=list)
    users: list[dict[str, Any]] = Field(default_factory=list)
    admins: list[dict[str, Any]] = Field(default_factory=list)
    volunteers: list[dict[str, Any]] = Field(default_factory=list)
    agencies: list[dict[str, Any]] = Field(default_factory=list)
