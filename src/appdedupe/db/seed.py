"""Sample data for local development.

Wipes users, clusters and app names, then creates three reviewers, three
clusters and six app names (three of them confirmed).

    python -m appdedupe.db.seed [--create-tables]
"""

from __future__ import annotations

import argparse
import asyncio
import logging

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from appdedupe.auth.password import hash_password
from appdedupe.clock import utcnow
from appdedupe.config import get_settings
from appdedupe.database import close_db, get_engine, get_session, init_db
from appdedupe.db.base import Base
from appdedupe.db.models import AppName, Cluster, SessionToken, User, UserAchievement

logger = logging.getLogger(__name__)

SAMPLE_USERS: list[dict] = [
    {"name": "Admin Reviewer", "email": "admin@example.com", "password": "test1234", "role": "admin"},
    {"name": "John Doe", "email": "john@example.com", "password": "password123", "role": "user"},
    {"name": "Jane Smith", "email": "jane@example.com", "password": "password123", "role": "user"},
]

# creator is an index into SAMPLE_USERS
SAMPLE_CLUSTERS: list[dict] = [
    {
        "name": "Microsoft Office",
        "canonical_name": "microsoft-office",
        "description": "Microsoft Office applications",
        "creator": 1,
    },
    {
        "name": "Adobe Creative Suite",
        "canonical_name": "adobe-creative-suite",
        "description": "Adobe Creative Suite applications",
        "creator": 1,
    },
    {
        "name": "Communication Tools",
        "canonical_name": "communication-tools",
        "description": "Communication and collaboration tools",
        "creator": 2,
    },
]

# cluster is an index into SAMPLE_CLUSTERS; confirmed_by/creator into SAMPLE_USERS
SAMPLE_APPS: list[dict] = [
    {"name": "Microsoft Excel", "canonical_name": "microsoft-excel", "cluster": 0, "confirmed_by": 1, "creator": 1},
    {"name": "MS Excel", "canonical_name": "microsoft-excel", "cluster": 0, "confirmed_by": None, "creator": 2},
    {"name": "Adobe Photoshop", "canonical_name": "adobe-photoshop", "cluster": 1, "confirmed_by": 2, "creator": 1},
    {"name": "PS", "canonical_name": "adobe-photoshop", "cluster": 1, "confirmed_by": None, "creator": 2},
    {"name": "Slack", "canonical_name": "slack", "cluster": 2, "confirmed_by": 1, "creator": 2},
    {"name": "Slack Desktop", "canonical_name": "slack", "cluster": 2, "confirmed_by": None, "creator": 1},
]


async def seed_sample_data(db: AsyncSession) -> dict[str, int]:
    """Replace all data with the sample set. Returns row counts."""
    for model in (UserAchievement, SessionToken, AppName, Cluster, User):
        await db.execute(delete(model))

    users = [
        User(name=u["name"], email=u["email"], password_hash=hash_password(u["password"]), role=u["role"])
        for u in SAMPLE_USERS
    ]
    db.add_all(users)
    await db.flush()

    clusters = [
        Cluster(
            name=c["name"],
            canonical_name=c["canonical_name"],
            description=c["description"],
            created_by_id=users[c["creator"]].id,
        )
        for c in SAMPLE_CLUSTERS
    ]
    db.add_all(clusters)
    await db.flush()

    now = utcnow()
    for a in SAMPLE_APPS:
        confirmer = users[a["confirmed_by"]] if a["confirmed_by"] is not None else None
        db.add(
            AppName(
                name=a["name"],
                canonical_name=a["canonical_name"],
                cluster_id=clusters[a["cluster"]].id,
                confirmed=confirmer is not None,
                confirmed_by_id=confirmer.id if confirmer else None,
                confirmed_at=now if confirmer else None,
                created_by_id=users[a["creator"]].id,
            )
        )
    await db.commit()

    counts = {"users": len(users), "clusters": len(clusters), "apps": len(SAMPLE_APPS)}
    logger.info("Seeded sample data: %s", counts)
    return counts


async def main(create_tables: bool = False) -> None:
    settings = get_settings()
    await init_db(settings.database_url)
    try:
        if create_tables:
            async with get_engine().begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        async for db in get_session():
            await seed_sample_data(db)
    finally:
        await close_db()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Load sample clusters and app names.")
    parser.add_argument("--create-tables", action="store_true", help="create the schema first (SQLite dev runs)")
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main(create_tables=args.create_tables))
