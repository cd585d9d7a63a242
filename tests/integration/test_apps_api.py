"""App-name listing, creation and edit endpoints."""

from httpx import AsyncClient
from sqlalchemy import select

from appdedupe.db.models import AppName
from tests.conftest import app_id, make_cluster


class TestListApps:
    async def test_requires_auth(self, client: AsyncClient, engine):
        assert (await client.get("/api/v1/apps")).status_code == 401

    async def test_lists_with_related_names(self, client: AsyncClient, reviewer: dict, db_session):
        cluster = await make_cluster(db_session, "Slack", ["Slack", "Slack Desktop"], canonical_name="slack")
        response = await client.get("/api/v1/apps", headers=reviewer["headers"])
        assert response.status_code == 200
        apps = response.json()
        assert [a["name"] for a in apps] == ["Slack", "Slack Desktop"]
        first = apps[0]
        assert first["canonicalName"] == "slack"
        assert first["cluster"] == {"id": cluster.id, "name": "Slack"}
        assert first["confirmed"] is False
        assert first["confirmedBy"] is None
        assert first["createdBy"] is None

    async def test_filter_and_shortcuts(self, client: AsyncClient, reviewer: dict, db_session):
        await make_cluster(db_session, "Slack", ["Slack", "Slack Desktop"])
        target = await app_id(db_session, "Slack")
        await client.patch(f"/api/v1/apps/{target}/confirm", headers=reviewer["headers"])

        confirmed = (await client.get("/api/v1/apps?confirmed=true", headers=reviewer["headers"])).json()
        unconfirmed = (await client.get("/api/v1/apps?confirmed=false", headers=reviewer["headers"])).json()
        assert [a["name"] for a in confirmed] == ["Slack"]
        assert [a["name"] for a in unconfirmed] == ["Slack Desktop"]
        assert confirmed[0]["confirmedBy"]["name"] == "Jane Smith"

        assert (await client.get("/api/v1/apps/confirmed", headers=reviewer["headers"])).json() == confirmed
        assert (await client.get("/api/v1/apps/unconfirmed", headers=reviewer["headers"])).json() == unconfirmed


class TestCreateApp:
    async def test_create_in_cluster_inherits_canonical_name(self, client: AsyncClient, reviewer: dict, db_session):
        cluster = await make_cluster(db_session, "Adobe Photoshop", [], canonical_name="adobe-photoshop")
        response = await client.post(
            "/api/v1/apps", json={"name": "Photoshop CC", "cluster": cluster.id}, headers=reviewer["headers"]
        )
        assert response.status_code == 201
        data = response.json()
        assert data["name"] == "Photoshop CC"
        assert data["canonicalName"] == "adobe-photoshop"
        assert data["confirmed"] is False
        assert data["createdBy"]["name"] == "Jane Smith"

    async def test_create_without_cluster(self, client: AsyncClient, reviewer: dict):
        response = await client.post("/api/v1/apps", json={"name": "Zoom"}, headers=reviewer["headers"])
        assert response.status_code == 201
        assert response.json()["cluster"] is None
        assert response.json()["canonicalName"] == "Zoom"

    async def test_unknown_cluster(self, client: AsyncClient, reviewer: dict, db_session):
        response = await client.post(
            "/api/v1/apps", json={"name": "Zoom", "cluster": 999}, headers=reviewer["headers"]
        )
        assert response.status_code == 404
        assert (await db_session.execute(select(AppName.id))).first() is None

    async def test_blank_name(self, client: AsyncClient, reviewer: dict):
        response = await client.post("/api/v1/apps", json={"name": "  "}, headers=reviewer["headers"])
        assert response.status_code == 400


class TestUpdateApp:
    async def test_edit_allowed_fields(self, client: AsyncClient, reviewer: dict, db_session):
        await make_cluster(db_session, "Slack", ["Slack"])
        other = await make_cluster(db_session, "Chat", [])
        target = await app_id(db_session, "Slack")

        response = await client.patch(
            f"/api/v1/apps/{target}",
            json={"name": "Slack Beta", "cluster": other.id, "notes": "  beta build  "},
            headers=reviewer["headers"],
        )
        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Slack Beta"
        assert data["cluster"]["id"] == other.id
        assert data["notes"] == "beta build"

    async def test_other_keys_rejected_without_change(self, client: AsyncClient, reviewer: dict, db_session):
        await make_cluster(db_session, "Slack", ["Slack"])
        target = await app_id(db_session, "Slack")

        response = await client.patch(
            f"/api/v1/apps/{target}", json={"name": "Renamed", "confirmed": True}, headers=reviewer["headers"]
        )
        assert response.status_code == 400
        body = response.json()
        assert body["detail"] == "Invalid updates"
        assert body["errors"] == [{"field": "confirmed", "message": "Field cannot be updated"}]

        name, confirmed = (
            await db_session.execute(select(AppName.name, AppName.confirmed).where(AppName.id == target))
        ).one()
        assert name == "Slack"
        assert confirmed is False

    async def test_edit_confirmed_app_keeps_confirmation(self, client: AsyncClient, reviewer: dict, db_session):
        await make_cluster(db_session, "Slack", ["Slack"])
        target = await app_id(db_session, "Slack")
        await client.patch(f"/api/v1/apps/{target}/confirm", headers=reviewer["headers"])

        response = await client.patch(
            f"/api/v1/apps/{target}", json={"notes": "checked"}, headers=reviewer["headers"]
        )
        assert response.status_code == 200
        assert response.json()["confirmed"] is True
        assert response.json()["confirmedBy"]["name"] == "Jane Smith"

    async def test_detach_from_cluster(self, client: AsyncClient, reviewer: dict, db_session):
        await make_cluster(db_session, "Slack", ["Slack"])
        target = await app_id(db_session, "Slack")
        response = await client.patch(f"/api/v1/apps/{target}", json={"cluster": None}, headers=reviewer["headers"])
        assert response.status_code == 200
        assert response.json()["cluster"] is None

    async def test_unknown_app(self, client: AsyncClient, reviewer: dict):
        response = await client.patch("/api/v1/apps/999", json={"notes": "x"}, headers=reviewer["headers"])
        assert response.status_code == 404

    async def test_unknown_target_cluster(self, client: AsyncClient, reviewer: dict, db_session):
        await make_cluster(db_session, "Slack", ["Slack"])
        target = await app_id(db_session, "Slack")
        response = await client.patch(f"/api/v1/apps/{target}", json={"cluster": 999}, headers=reviewer["headers"])
        assert response.status_code == 404

    async def test_blank_name_rejected(self, client: AsyncClient, reviewer: dict, db_session):
        await make_cluster(db_session, "Slack", ["Slack"])
        target = await app_id(db_session, "Slack")
        response = await client.patch(f"/api/v1/apps/{target}", json={"name": " "}, headers=reviewer["headers"])
        assert response.status_code == 400
