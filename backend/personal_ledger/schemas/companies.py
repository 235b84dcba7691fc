# backend/personal_ledger/schemas/companies.py
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator

from .common import (
    MAX_DESCRIPTION_LEN,
    MAX_SHORT_TEXT_LEN,
    blank_to_none,
    check_length,
    check_name,
    check_required_text,
)


class CompanyIn(BaseModel):
    """
    Request body for POST and PUT /companies.

    `name` is required on PUT; optional fields left out of the body keep
    their stored value.
    """

    name: str
    description: str | None = None
    website: str | None = None
    logo: str | None = None

    @field_validator("description", "website", "logo", mode="before")
    @classmethod
    def _blank_to_none(cls, v):
        return blank_to_none(v)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return check_name("name", check_required_text("name", v))

    @field_validator("description")
    @classmethod
    def validate_description(cls, v: str | None) -> str | None:
        return check_length("description", v, MAX_DESCRIPTION_LEN)

    # Website and logo are URLs by convention only
    @field_validator("website", "logo")
    @classmethod
    def validate_links(cls, v: str | None, info) -> str | None:
        return check_length(info.field_name, v, MAX_SHORT_TEXT_LEN)


class CompanyOut(BaseModel):
    id: UUID
    name: str
    description: str | None = None
    website: str | None = None
    logo: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
