"""Admin router: CSV ingestion, export and global counts under /api/v1/admin."""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from appdedupe.auth.dependencies import require_admin
from appdedupe.auth.policy import AdminPolicy, get_admin_policy
from appdedupe.config import get_settings
from appdedupe.database import get_session
from appdedupe.db.models import User
from appdedupe.errors import ValidationError
from appdedupe.ingestion.schemas import AdminStatsResponse, ExportedCluster, UploadResponse
from appdedupe.ingestion.service import admin_counts, export_confirmed_clusters, ingest_csv

router = APIRouter(prefix="/api/v1/admin", tags=["Admin"])


@router.post("/upload-csv", response_model=UploadResponse)
async def upload_csv(
    file: UploadFile | None = File(None),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
    policy: AdminPolicy = Depends(get_admin_policy),
) -> UploadResponse:
    """Replace all clusters and app names with the uploaded CSV."""
    if file is None:
        msg = "No file uploaded"
        raise ValidationError(msg, errors=[{"field": "file", "message": msg}])
    # One byte past the limit is enough for the service to reject the upload.
    data = await file.read(get_settings().csv_max_upload_bytes + 1)
    result = await ingest_csv(db, data, admin, policy)
    return UploadResponse(
        message="CSV ingested successfully",
        clusters_created=result.clusters_created,
        apps_created=result.apps_created,
        skipped_rows=result.skipped_rows,
    )


@router.get("/export-clusters", response_model=list[ExportedCluster])
async def export_clusters(
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> list[ExportedCluster]:
    """Every cluster whose app names are all confirmed."""
    return [ExportedCluster.model_validate(c) for c in await export_confirmed_clusters(db)]


@router.get("/stats", response_model=AdminStatsResponse)
async def stats(
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> AdminStatsResponse:
    return AdminStatsResponse.model_validate(await admin_counts(db))
