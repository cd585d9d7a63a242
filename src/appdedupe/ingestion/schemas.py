"""Response schemas for the admin endpoints."""

from __future__ import annotations

from appdedupe.schemas import CamelModel


class UploadResponse(CamelModel):
    message: str
    clusters_created: int
    apps_created: int
    skipped_rows: list[int] = []


class ExportedCluster(CamelModel):
    """A fully confirmed cluster: label plus member names."""

    cluster: str
    apps: list[str]


class AdminStatsResponse(CamelModel):
    total_apps: int
    confirmed_apps: int
    unconfirmed_apps: int
    pending_reviews: int
