"""
Bulk cluster ingestion and export.

Ingestion is two-phase: the upload is parsed into an ``IngestionPlan`` in
memory, then the clusters and app names are swapped out in one transaction.
A parse failure never reaches the database; a storage failure rolls the swap
back and leaves the previous data in place.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from itertools import groupby
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import case, delete, func, select
from sqlalchemy.exc import SQLAlchemyError

from appdedupe.auth.policy import AdminPolicy
from appdedupe.config import get_settings
from appdedupe.db.models import AppName, Cluster, User
from appdedupe.errors import AuthorizationError, StorageError, ValidationError
from appdedupe.ingestion.parser import IngestionPlan, parse_csv

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

# Serializes swaps within this process so two uploads never interleave.
_ingest_lock = asyncio.Lock()


@dataclass
class IngestionResult:
    clusters_created: int = 0
    apps_created: int = 0
    skipped_rows: list[int] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Ingestion
# ---------------------------------------------------------------------------


async def ingest_csv(
    db: AsyncSession,
    data: bytes,
    uploader: User,
    policy: AdminPolicy,
) -> IngestionResult:
    """
    Replace all clusters and app names with the content of a CSV upload.

    Raises:
        AuthorizationError: If the uploader is not an admin. Checked first.
        ValidationError: If the upload is too large.
        CsvFormatError: If the upload cannot be parsed. No data is touched.
        StorageError: If the swap fails. The transaction is rolled back.
    """
    if not policy.is_admin(uploader.email):
        logger.warning("csv_upload_denied", user_id=uploader.id)
        msg = "Access denied"
        raise AuthorizationError(msg)

    max_bytes = get_settings().csv_max_upload_bytes
    if len(data) > max_bytes:
        msg = f"File exceeds the {max_bytes} byte upload limit"
        raise ValidationError(msg)

    plan = parse_csv(data)
    for row in plan.skipped_rows:
        logger.warning("csv_row_skipped", row=row, reason="missing canonical name")

    async with _ingest_lock:
        try:
            result = await _swap(db, plan, uploader.id)
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("csv_ingest_failed", error=str(e), exc_info=e)
            msg = "Database error during CSV ingestion"
            raise StorageError(msg) from e

    logger.info(
        "csv_ingested",
        user_id=uploader.id,
        clusters=result.clusters_created,
        apps=result.apps_created,
        skipped=len(result.skipped_rows),
    )
    return result


async def _swap(db: AsyncSession, plan: IngestionPlan, uploader_id: int) -> IngestionResult:
    """Delete every app name and cluster, then insert the plan. Caller commits."""
    await db.execute(delete(AppName))
    await db.execute(delete(Cluster))

    result = IngestionResult(skipped_rows=list(plan.skipped_rows))
    for planned in plan.clusters:
        cluster = Cluster(
            name=planned.canonical_name,
            canonical_name=planned.canonical_name,
            description="",
            created_by_id=uploader_id,
        )
        db.add(cluster)
        await db.flush()
        db.add_all(
            AppName(
                name=name,
                canonical_name=planned.canonical_name,
                cluster_id=cluster.id,
                confirmed=False,
                created_by_id=uploader_id,
            )
            for name in planned.app_names
        )
        result.clusters_created += 1
        result.apps_created += len(planned.app_names)
    await db.flush()
    return result


# ---------------------------------------------------------------------------
# Export / admin counts
# ---------------------------------------------------------------------------


async def export_confirmed_clusters(db: AsyncSession) -> list[dict[str, Any]]:
    """
    Clusters whose members are all confirmed, with member names.

    A cluster with no members, or with any unconfirmed member, is left out.
    """
    result = await db.execute(
        select(Cluster.id, Cluster.name, Cluster.canonical_name, AppName.name, AppName.confirmed)
        .join(AppName, AppName.cluster_id == Cluster.id)
        .order_by(Cluster.id, AppName.id)
    )

    exported = []
    for (_, name, canonical_name), members in groupby(result.all(), key=lambda r: (r[0], r[1], r[2])):
        members = list(members)
        if all(m[4] for m in members):
            exported.append({
                "cluster": canonical_name or name,
                "apps": [m[3] for m in members],
            })
    return exported


async def admin_counts(db: AsyncSession) -> dict[str, int]:
    """Global app-name counts for the admin dashboard."""
    row = (
        await db.execute(
            select(
                func.count(AppName.id),
                func.coalesce(func.sum(case((AppName.confirmed.is_(True), 1), else_=0)), 0),
            )
        )
    ).one()
    total, confirmed = int(row[0]), int(row[1])
    return {
        "total_apps": total,
        "confirmed_apps": confirmed,
        "unconfirmed_apps": total - confirmed,
        "pending_reviews": total - confirmed,
    }
