"""App-name write operations: create and field edits.

Confirmation has its own module (``appdedupe.apps.confirmation``) since it
also updates the confirming user's score.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pydantic
import structlog
from sqlalchemy import select

from appdedupe.apps.queries import get_app_view
from appdedupe.apps.schemas import AppUpdateRequest
from appdedupe.db.models import AppName, Cluster, User
from appdedupe.errors import NotFoundError, ValidationError, validation_error_from

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

ALLOWED_APP_UPDATES = frozenset({"name", "cluster", "notes"})


async def _get_cluster(db: AsyncSession, cluster_id: int) -> Cluster:
    cluster = await db.get(Cluster, cluster_id)
    if cluster is None:
        msg = "Cluster not found"
        raise NotFoundError(msg)
    return cluster


async def create_app(
    db: AsyncSession,
    name: str,
    creator: User,
    cluster_id: int | None = None,
    canonical_name: str | None = None,
) -> dict:
    """
    Add a single unconfirmed app name.

    ``canonical_name`` defaults to the cluster's canonical name, or to the
    app's own name when it has no cluster.
    """
    cluster = await _get_cluster(db, cluster_id) if cluster_id is not None else None
    if not canonical_name:
        canonical_name = cluster.canonical_name if cluster is not None else name

    app = AppName(
        name=name,
        canonical_name=canonical_name,
        cluster_id=cluster_id,
        confirmed=False,
        created_by_id=creator.id,
    )
    db.add(app)
    await db.commit()
    logger.info("app_created", app_id=app.id, cluster_id=cluster_id, user_id=creator.id)
    return await get_app_view(db, app.id)


async def update_app(db: AsyncSession, app_id: int, changes: dict[str, Any]) -> dict:
    """
    Apply edits to ``name``, ``cluster`` and ``notes``.

    Allowed regardless of confirmation state; never touches ``confirmed``.

    Raises:
        ValidationError: If any other field is present or a value is invalid.
        NotFoundError: If the app or the target cluster does not exist.
    """
    invalid = sorted(set(changes) - ALLOWED_APP_UPDATES)
    if invalid:
        msg = "Invalid updates"
        raise ValidationError(msg, errors=[{"field": key, "message": "Field cannot be updated"} for key in invalid])
    try:
        update = AppUpdateRequest.model_validate(changes)
    except pydantic.ValidationError as e:
        raise validation_error_from(e) from e

    app = (await db.execute(select(AppName).where(AppName.id == app_id))).scalar_one_or_none()
    if app is None:
        msg = "App not found"
        raise NotFoundError(msg)

    fields = update.model_fields_set
    if "name" in fields:
        app.name = update.name
    if "cluster" in fields:
        if update.cluster is not None:
            await _get_cluster(db, update.cluster)
        app.cluster_id = update.cluster
    if "notes" in fields:
        app.notes = update.notes

    await db.commit()
    logger.info("app_updated", app_id=app_id, fields=sorted(fields))
    return await get_app_view(db, app_id)
