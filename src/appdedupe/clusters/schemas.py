"""Request/response schemas for clusters."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field, field_validator

from appdedupe.schemas import CamelModel


def _required(v: str | None) -> str:
    if v is None or not v.strip():
        msg = "Field cannot be empty"
        raise ValueError(msg)
    return v.strip()


class ClusterCreateRequest(CamelModel):
    name: str = Field(..., max_length=512)
    canonical_name: str = Field(..., max_length=512)
    description: str | None = None

    @field_validator("name", "canonical_name")
    @classmethod
    def strip_names(cls, v: str | None) -> str:
        return _required(v)


class ClusterUpdateRequest(CamelModel):
    """Editable fields. Only keys present in the body are applied."""

    name: str | None = Field(None, max_length=512)
    canonical_name: str | None = Field(None, max_length=512)
    description: str | None = None

    @field_validator("name", "canonical_name")
    @classmethod
    def strip_names(cls, v: str | None) -> str:
        return _required(v)


class ClusterResponse(CamelModel):
    id: int
    name: str
    canonical_name: str
    description: str | None = None
    created_by_id: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ClusterWithRatioResponse(ClusterResponse):
    """Cluster plus its live confirmation numbers."""

    total_apps: int
    confirmed_apps: int
    confirmation_ratio: float


class ClusterStatsResponse(CamelModel):
    total_apps: int
    confirmed_apps: int
    unconfirmed_apps: int
