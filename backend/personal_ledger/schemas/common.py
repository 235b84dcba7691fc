# backend/personal_ledger/schemas/common.py
"""
Validation helpers shared by the thing and company schemas.

Name-like values are trimmed, must not be blank and must not contain any of
FORBIDDEN_NAME_CHARACTERS. Optional values sent as blank strings become None.
No text value may contain a NUL character; Postgres cannot store one.
"""
from pydantic import BaseModel

MAX_SHORT_TEXT_LEN = 50
MAX_DESCRIPTION_LEN = 100
FORBIDDEN_NAME_CHARACTERS = frozenset('/()"<>\\{}')

# Paging bounds for list endpoints; offsets above a signed 64-bit int overflow storage
MAX_PAGE_SIZE = 1000
MAX_OFFSET = 2**63 - 1


def blank_to_none(v):
    if v is None:
        return None
    if isinstance(v, str):
        stripped = v.strip()
        return stripped or None
    return v


def check_length(field: str, v: str | None, max_len: int) -> str | None:
    if v is not None and "\x00" in v:
        raise ValueError(f"{field} must not contain NUL characters")
    if v is not None and len(v) > max_len:
        raise ValueError(f"{field} must be at most {max_len} characters")
    return v


def check_required_text(field: str, v: str, max_len: int = MAX_SHORT_TEXT_LEN) -> str:
    v = v.strip()
    if not v:
        raise ValueError(f"{field} must not be empty")
    return check_length(field, v, max_len)


def check_name(field: str, v: str | None) -> str | None:
    if v is None:
        return None
    bad = sorted(set(v) & FORBIDDEN_NAME_CHARACTERS)
    if bad:
        raise ValueError(f"{field} contains forbidden characters: {''.join(bad)}")
    return check_length(field, v, MAX_SHORT_TEXT_LEN)


class ErrorBody(BaseModel):
    kind: str
    message: str
    details: list[dict] | None = None


class ErrorOut(BaseModel):
    error: ErrorBody
