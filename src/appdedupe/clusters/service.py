"""Cluster operations and the confirmation-ratio projection.

Ratios are computed per query from ``app_names``; nothing derived is stored
on the cluster row.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pydantic
import structlog
from sqlalchemy import case, func, select

from appdedupe.clusters.schemas import ClusterUpdateRequest
from appdedupe.db.models import AppName, Cluster, User
from appdedupe.errors import NotFoundError, ValidationError, validation_error_from

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

# Body keys accepted by PATCH, in either casing.
ALLOWED_CLUSTER_UPDATES = frozenset({"name", "canonicalName", "canonical_name", "description"})

_confirmed_count = func.coalesce(func.sum(case((AppName.confirmed.is_(True), 1), else_=0)), 0)


async def get_cluster(db: AsyncSession, cluster_id: int) -> Cluster:
    cluster = await db.get(Cluster, cluster_id)
    if cluster is None:
        msg = "Cluster not found"
        raise NotFoundError(msg)
    return cluster


async def create_cluster(
    db: AsyncSession,
    name: str,
    canonical_name: str,
    creator: User,
    description: str | None = None,
) -> Cluster:
    cluster = Cluster(
        name=name,
        canonical_name=canonical_name,
        description=description,
        created_by_id=creator.id,
    )
    db.add(cluster)
    await db.commit()
    logger.info("cluster_created", cluster_id=cluster.id, user_id=creator.id)
    return cluster


async def update_cluster(db: AsyncSession, cluster_id: int, changes: dict[str, Any]) -> Cluster:
    """
    Edit ``name``, ``canonicalName`` or ``description``.

    Member app names keep the canonical name they were created with.

    Raises:
        ValidationError: If any other field is present or a value is invalid.
        NotFoundError: If the cluster does not exist.
    """
    invalid = sorted(set(changes) - ALLOWED_CLUSTER_UPDATES)
    if invalid:
        msg = "Invalid updates"
        raise ValidationError(msg, errors=[{"field": key, "message": "Field cannot be updated"} for key in invalid])
    try:
        update = ClusterUpdateRequest.model_validate(changes)
    except pydantic.ValidationError as e:
        raise validation_error_from(e) from e

    cluster = await get_cluster(db, cluster_id)
    for field in update.model_fields_set:
        setattr(cluster, field, getattr(update, field))
    await db.commit()
    logger.info("cluster_updated", cluster_id=cluster_id, fields=sorted(update.model_fields_set))
    return cluster


async def list_clusters_with_ratio(db: AsyncSession) -> list[dict]:
    """
    Every cluster with ``total_apps``, ``confirmed_apps`` and
    ``confirmation_ratio``, sorted by ratio descending then name ascending.

    Empty clusters have a ratio of 0.
    """
    result = await db.execute(
        select(Cluster, func.count(AppName.id), _confirmed_count)
        .outerjoin(AppName, AppName.cluster_id == Cluster.id)
        .group_by(Cluster.id)
    )

    clusters = []
    for cluster, total, confirmed in result.all():
        total, confirmed = int(total), int(confirmed)
        clusters.append({
            "id": cluster.id,
            "name": cluster.name,
            "canonical_name": cluster.canonical_name,
            "description": cluster.description,
            "created_by_id": cluster.created_by_id,
            "created_at": cluster.created_at,
            "updated_at": cluster.updated_at,
            "total_apps": total,
            "confirmed_apps": confirmed,
            "confirmation_ratio": confirmed / total if total > 0 else 0.0,
        })
    clusters.sort(key=lambda c: (-c["confirmation_ratio"], c["name"]))
    return clusters


async def cluster_stats(db: AsyncSession, cluster_id: int) -> dict[str, int]:
    """App counts for one cluster."""
    await get_cluster(db, cluster_id)
    total, confirmed = (
        await db.execute(
            select(func.count(AppName.id), _confirmed_count).where(AppName.cluster_id == cluster_id)
        )
    ).one()
    return {
        "total_apps": int(total),
        "confirmed_apps": int(confirmed),
        "unconfirmed_apps": int(total) - int(confirmed),
    }
