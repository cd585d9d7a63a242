"""Request/response schemas for app names."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field, field_validator

from appdedupe.schemas import CamelModel


class NamedRef(CamelModel):
    """An id plus display name for a related record."""

    id: int
    name: str


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class AppCreateRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=512)
    cluster: int | None = None
    canonical_name: str | None = Field(None, max_length=512)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            msg = "Name is required"
            raise ValueError(msg)
        return v


class AppUpdateRequest(CamelModel):
    """Editable fields. Only keys present in the body are applied."""

    name: str | None = Field(None, max_length=512)
    cluster: int | None = None
    notes: str | None = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            msg = "Name cannot be empty"
            raise ValueError(msg)
        return v.strip()

    @field_validator("notes")
    @classmethod
    def strip_notes(cls, v: str | None) -> str | None:
        return v.strip() if v is not None else None


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class AppResponse(CamelModel):
    """App name with its cluster, creator and confirmer names."""

    id: int
    name: str
    canonical_name: str
    cluster: NamedRef | None = None
    confirmed: bool = False
    confirmed_by: NamedRef | None = None
    confirmed_at: datetime | None = None
    notes: str | None = None
    created_by: NamedRef | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ScoreResponse(CamelModel):
    xp: int
    level: int
    streak: int


class ConfirmResponse(CamelModel):
    app: AppResponse
    user: ScoreResponse
    cluster: NamedRef | None = None
