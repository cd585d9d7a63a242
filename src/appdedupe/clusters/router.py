"""Cluster endpoints under /api/v1/clusters."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from appdedupe.auth.dependencies import get_current_user
from appdedupe.clusters.schemas import (
    ClusterCreateRequest,
    ClusterResponse,
    ClusterStatsResponse,
    ClusterWithRatioResponse,
)
from appdedupe.clusters.service import (
    cluster_stats,
    create_cluster,
    list_clusters_with_ratio,
    update_cluster,
)
from appdedupe.database import get_session
from appdedupe.db.models import User

router = APIRouter(prefix="/api/v1/clusters", tags=["Clusters"])


@router.get("", response_model=list[ClusterWithRatioResponse])
async def list_clusters(
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> list[dict]:
    """Clusters ordered by confirmation ratio, most complete first."""
    return await list_clusters_with_ratio(db)


@router.post("", response_model=ClusterResponse, status_code=201)
async def add_cluster(
    body: ClusterCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ClusterResponse:
    cluster = await create_cluster(db, body.name, body.canonical_name, user, body.description)
    return ClusterResponse.model_validate(cluster)


@router.patch("/{cluster_id}", response_model=ClusterResponse)
async def edit_cluster(
    cluster_id: int,
    changes: dict[str, Any] = Body(...),
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ClusterResponse:
    cluster = await update_cluster(db, cluster_id, changes)
    return ClusterResponse.model_validate(cluster)


@router.get("/{cluster_id}/stats", response_model=ClusterStatsResponse)
async def stats(
    cluster_id: int,
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict:
    return await cluster_stats(db, cluster_id)
