# backend/personal_ledger/schemas/things.py
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator

from .common import blank_to_none, check_name, check_required_text


class ThingIn(BaseModel):
    """
    Request body for POST and PUT /things.

    On PUT, `last_name` and `email` are required; `first_name` and
    `middle_name` keep their stored value when left out of the body and are
    cleared by an explicit null.
    """

    first_name: str | None = None
    middle_name: str | None = None
    last_name: str
    email: str

    @field_validator("first_name", "middle_name", mode="before")
    @classmethod
    def _blank_to_none(cls, v):
        return blank_to_none(v)

    @field_validator("first_name", "middle_name")
    @classmethod
    def validate_optional_names(cls, v: str | None, info) -> str | None:
        return check_name(info.field_name, v)

    @field_validator("last_name")
    @classmethod
    def validate_last_name(cls, v: str) -> str:
        return check_name("last_name", check_required_text("last_name", v))

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return check_required_text("email", v)


class ThingOut(BaseModel):
    id: UUID
    first_name: str | None = None
    middle_name: str | None = None
    last_name: str
    email: str
    created_at: datetime
    subscribed_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
