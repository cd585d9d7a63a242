"""Read model for app names.

Joins each app name to its cluster, its creator and its confirmer so the
listing endpoints can show names without a lookup per row.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import Select, select
from sqlalchemy.orm import aliased

from appdedupe.db.models import AppName, Cluster, User

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

Creator = aliased(User, name="creator")
Confirmer = aliased(User, name="confirmer")


def _view_query() -> Select:
    return (
        select(AppName, Cluster.name, Creator.name, Confirmer.name)
        .outerjoin(Cluster, AppName.cluster_id == Cluster.id)
        .outerjoin(Creator, AppName.created_by_id == Creator.id)
        .outerjoin(Confirmer, AppName.confirmed_by_id == Confirmer.id)
    )


def _ref(ref_id: int | None, name: str | None) -> dict[str, Any] | None:
    if ref_id is None or name is None:
        return None
    return {"id": ref_id, "name": name}


def _to_view(app: AppName, cluster_name: str | None, creator_name: str | None, confirmer_name: str | None) -> dict:
    return {
        "id": app.id,
        "name": app.name,
        "canonical_name": app.canonical_name,
        "cluster": _ref(app.cluster_id, cluster_name),
        "confirmed": app.confirmed,
        "confirmed_by": _ref(app.confirmed_by_id, confirmer_name),
        "confirmed_at": app.confirmed_at,
        "notes": app.notes,
        "created_by": _ref(app.created_by_id, creator_name),
        "created_at": app.created_at,
        "updated_at": app.updated_at,
    }


async def list_app_views(db: AsyncSession, confirmed: bool | None = None) -> list[dict]:
    """All app names, optionally filtered by confirmation state, in insertion order."""
    stmt = _view_query().order_by(AppName.id)
    if confirmed is not None:
        stmt = stmt.where(AppName.confirmed.is_(confirmed))
    result = await db.execute(stmt)
    return [_to_view(*row) for row in result.all()]


async def get_app_view(db: AsyncSession, app_id: int) -> dict | None:
    result = await db.execute(_view_query().where(AppName.id == app_id))
    row = result.first()
    return _to_view(*row) if row else None
