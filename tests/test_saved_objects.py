"""Tests for the saved objects store and endpoints."""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from kbn_server.api.dependencies import get_saved_objects_client
from kbn_server.core.errors import ConflictError, NotFoundError
from kbn_server.saved_objects.client import SavedObjectsClient
from kbn_server.saved_objects.models import SavedObject


class TestSavedObjectModel:
    """Tests for the SQLAlchemy model."""

    def test_to_dict(self):
        obj = SavedObject(type="dashboard", id="d1", version=3)
        obj.attributes = {"title": "Sales", "panels": 4}
        obj.migration_version = {"dashboard": "6.4.0"}

        result = obj.to_dict()

        assert result["id"] == "d1"
        assert result["type"] == "dashboard"
        assert result["version"] == 3
        assert result["attributes"] == {"title": "Sales", "panels": 4}
        assert result["migrationVersion"] == {"dashboard": "6.4.0"}

    def test_to_dict_restricts_fields(self):
        obj = SavedObject(type="dashboard", id="d1", version=1)
        obj.attributes = {"title": "Sales", "panels": 4}

        assert obj.to_dict(["title"])["attributes"] == {"title": "Sales"}

    def test_migration_version_omitted_when_unset(self):
        obj = SavedObject(type="config", id="6.4.0", version=1)
        obj.attributes = {}
        obj.migration_version = None

        assert "migrationVersion" not in obj.to_dict()


@pytest.fixture
def client(saved_objects_store) -> SavedObjectsClient:
    return SavedObjectsClient(saved_objects_store)


class TestSavedObjectsClient:
    """Tests for SavedObjectsClient against a real SQLite file."""

    async def test_bulk_create_generates_ids(self, client):
        result = await client.bulk_create([
            {"type": "visualization", "attributes": {"title": "A"}},
            {"type": "visualization", "attributes": {"title": "B"}},
        ])

        saved = result["saved_objects"]
        assert len(saved) == 2
        assert saved[0]["id"] != saved[1]["id"]
        assert [s["attributes"]["title"] for s in saved] == ["A", "B"]
        assert all(s["version"] == 1 for s in saved)

    async def test_bulk_create_reports_conflicts_per_object(self, client):
        await client.create("dashboard", {"title": "old"}, id="d1")

        result = await client.bulk_create([
            {"type": "dashboard", "id": "d1", "attributes": {"title": "new"}},
            {"type": "dashboard", "id": "d2", "attributes": {"title": "other"}},
        ])

        first, second = result["saved_objects"]
        assert first == {
            "id": "d1",
            "type": "dashboard",
            "error": {"statusCode": 409, "message": "Saved object [dashboard/d1] conflict"},
        }
        assert second["id"] == "d2"
        assert (await client.get("dashboard", "d1"))["attributes"] == {"title": "old"}

    async def test_bulk_create_overwrite_bumps_version(self, client):
        await client.create("dashboard", {"title": "old"}, id="d1")

        result = await client.bulk_create(
            [{"type": "dashboard", "id": "d1", "attributes": {"title": "new"}}],
            overwrite=True,
        )

        saved = result["saved_objects"][0]
        assert saved["version"] == 2
        assert saved["attributes"] == {"title": "new"}

    async def test_bulk_create_overwrite_with_stale_version(self, client):
        await client.create("dashboard", {"title": "old"}, id="d1")

        result = await client.bulk_create(
            [{"type": "dashboard", "id": "d1", "attributes": {"title": "new"}, "version": 7}],
            overwrite=True,
        )

        assert result["saved_objects"][0]["error"]["statusCode"] == 409

    async def test_bulk_create_keeps_migration_version(self, client):
        result = await client.bulk_create([
            {
                "type": "visualization",
                "id": "v1",
                "attributes": {},
                "migrationVersion": {"visualization": "6.4.0"},
            }
        ])

        assert result["saved_objects"][0]["migrationVersion"] == {"visualization": "6.4.0"}

    async def test_duplicate_in_one_batch(self, client):
        result = await client.bulk_create([
            {"type": "search", "id": "s1", "attributes": {"title": "first"}},
            {"type": "search", "id": "s1", "attributes": {"title": "second"}},
        ])

        assert "error" not in result["saved_objects"][0]
        assert result["saved_objects"][1]["error"]["statusCode"] == 409

    async def test_bulk_create_reports_unwritable_objects(self, client):
        result = await client.bulk_create([
            {"type": "dashboard", "id": "d1", "attributes": {"owner": object()}},
            {"type": "dashboard", "id": "d2", "attributes": {"title": "ok"}},
        ])

        first, second = result["saved_objects"]
        assert first["error"] == {
            "statusCode": 500,
            "message": "An internal server error occurred",
        }
        assert second["attributes"] == {"title": "ok"}
        with pytest.raises(NotFoundError):
            await client.get("dashboard", "d1")

    async def test_updated_at_is_utc(self, client):
        created = await client.create("dashboard", {}, id="d1")
        fetched = await client.get("dashboard", "d1")

        assert created["updated_at"].endswith("Z")
        assert "+" not in created["updated_at"]
        assert fetched["updated_at"] == created["updated_at"]

    async def test_create_conflict(self, client):
        await client.create("config", {"buildNum": 1}, id="6.4.0")

        with pytest.raises(ConflictError):
            await client.create("config", {"buildNum": 2}, id="6.4.0")

    async def test_get_missing(self, client):
        with pytest.raises(NotFoundError):
            await client.get("dashboard", "missing")

    async def test_bulk_get(self, client):
        await client.create("dashboard", {"title": "Sales", "panels": 2}, id="d1")

        result = await client.bulk_get([
            {"type": "dashboard", "id": "d1", "fields": ["title"]},
            {"type": "dashboard", "id": "nope"},
        ])

        found, missing = result["saved_objects"]
        assert found["attributes"] == {"title": "Sales"}
        assert missing["error"]["statusCode"] == 404

    async def test_update_merges_attributes(self, client):
        await client.create("dashboard", {"title": "Sales", "panels": 2}, id="d1")

        result = await client.update("dashboard", "d1", {"panels": 3})

        assert result["version"] == 2
        stored = await client.get("dashboard", "d1")
        assert stored["attributes"] == {"title": "Sales", "panels": 3}

    async def test_update_version_conflict(self, client):
        await client.create("dashboard", {"title": "Sales"}, id="d1")

        with pytest.raises(ConflictError):
            await client.update("dashboard", "d1", {"title": "x"}, version=5)

    async def test_delete(self, client):
        await client.create("dashboard", {}, id="d1")

        assert await client.delete("dashboard", "d1") == {}
        with pytest.raises(NotFoundError):
            await client.delete("dashboard", "d1")

    async def test_find_filters_and_pages(self, client):
        await client.bulk_create([
            {"type": "dashboard", "id": f"d{i}", "attributes": {"title": f"Sales {i}"}}
            for i in range(5)
        ] + [{"type": "visualization", "id": "v1", "attributes": {"title": "Sales chart"}}])

        result = await client.find(type=["dashboard"], per_page=2, page=2)

        assert result["total"] == 5
        assert result["page"] == 2
        assert [o["id"] for o in result["saved_objects"]] == ["d2", "d3"]

    async def test_find_search(self, client):
        await client.bulk_create([
            {"type": "dashboard", "id": "d1", "attributes": {"title": "Revenue"}},
            {"type": "dashboard", "id": "d2", "attributes": {"title": "Traffic"}},
        ])

        result = await client.find(search="rev*")

        assert [o["id"] for o in result["saved_objects"]] == ["d1"]

    async def test_count(self, client):
        await client.bulk_create([
            {"type": "dashboard", "attributes": {}},
            {"type": "dashboard", "attributes": {}},
            {"type": "search", "attributes": {}},
        ])

        assert await client.count("dashboard") == 2


class TestBulkCreateRoute:
    """Tests for POST /api/saved_objects/_bulk_create."""

    def test_forwards_payload_and_overwrite(self, app, auth_headers):
        client = AsyncMock(spec=SavedObjectsClient)
        client.bulk_create.return_value = {"saved_objects": []}
        app.dependency_overrides[get_saved_objects_client] = lambda: client
        payload = [
            {"type": "dashboard", "id": "d1", "attributes": {"title": "A"}, "version": 2},
            {"type": "index-pattern", "attributes": {"title": "logs-*"}, "migrationVersion": {"index-pattern": "6.4.0"}},
        ]

        with TestClient(app) as http:
            response = http.post(
                "/api/saved_objects/_bulk_create?overwrite=true",
                json=payload,
                headers=auth_headers,
            )

        assert response.status_code == 200
        client.bulk_create.assert_awaited_once_with(payload, overwrite=True)

    def test_overwrite_defaults_to_false(self, app, auth_headers):
        client = AsyncMock(spec=SavedObjectsClient)
        client.bulk_create.return_value = {"saved_objects": []}
        app.dependency_overrides[get_saved_objects_client] = lambda: client

        with TestClient(app) as http:
            http.post(
                "/api/saved_objects/_bulk_create",
                json=[{"type": "dashboard", "attributes": {}}],
                headers=auth_headers,
            )

        client.bulk_create.assert_awaited_once_with(
            [{"type": "dashboard", "attributes": {}}], overwrite=False
        )

    def test_accepts_fractional_version(self, app, auth_headers):
        client = AsyncMock(spec=SavedObjectsClient)
        client.bulk_create.return_value = {"saved_objects": []}
        app.dependency_overrides[get_saved_objects_client] = lambda: client
        payload = [{"type": "dashboard", "id": "d1", "attributes": {}, "version": 1.5}]

        with TestClient(app) as http:
            response = http.post(
                "/api/saved_objects/_bulk_create", json=payload, headers=auth_headers
            )

        assert response.status_code == 200
        client.bulk_create.assert_awaited_once_with(payload, overwrite=False)

    def test_fractional_version_never_matches(self, sync_client: TestClient, auth_headers):
        sync_client.post(
            "/api/saved_objects/dashboard/d1", json={"attributes": {}}, headers=auth_headers
        )

        response = sync_client.post(
            "/api/saved_objects/_bulk_create?overwrite=true",
            json=[{"type": "dashboard", "id": "d1", "attributes": {}, "version": 1.5}],
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json()["saved_objects"][0]["error"]["statusCode"] == 409

    def test_creates_and_conflicts(self, sync_client: TestClient, auth_headers):
        payload = [{"type": "dashboard", "id": "d1", "attributes": {"title": "A"}}]

        first = sync_client.post("/api/saved_objects/_bulk_create", json=payload, headers=auth_headers)
        second = sync_client.post("/api/saved_objects/_bulk_create", json=payload, headers=auth_headers)

        assert first.status_code == 200
        assert first.json()["saved_objects"][0]["attributes"] == {"title": "A"}
        assert second.json()["saved_objects"][0]["error"]["statusCode"] == 409

    def test_requires_type(self, sync_client: TestClient, auth_headers):
        response = sync_client.post(
            "/api/saved_objects/_bulk_create",
            json=[{"attributes": {}}],
            headers=auth_headers,
        )
        assert response.status_code == 400

    def test_requires_attributes(self, sync_client: TestClient, auth_headers):
        response = sync_client.post(
            "/api/saved_objects/_bulk_create",
            json=[{"type": "dashboard"}],
            headers=auth_headers,
        )
        assert response.status_code == 400

    def test_rejects_unknown_keys(self, sync_client: TestClient, auth_headers):
        response = sync_client.post(
            "/api/saved_objects/_bulk_create",
            json=[{"type": "dashboard", "attributes": {}, "references": []}],
            headers=auth_headers,
        )
        assert response.status_code == 400

    def test_requires_authorization(self, sync_client: TestClient):
        response = sync_client.post("/api/saved_objects/_bulk_create", json=[])
        assert response.status_code == 401


class TestSavedObjectRoutes:
    """Tests for the single-object endpoints."""

    def test_crud(self, sync_client: TestClient, auth_headers):
        created = sync_client.post(
            "/api/saved_objects/dashboard/d1",
            json={"attributes": {"title": "Sales"}},
            headers=auth_headers,
        )
        assert created.status_code == 200

        fetched = sync_client.get("/api/saved_objects/dashboard/d1", headers=auth_headers)
        assert fetched.json()["attributes"] == {"title": "Sales"}

        updated = sync_client.put(
            "/api/saved_objects/dashboard/d1",
            json={"attributes": {"description": "Q3"}, "version": 1},
            headers=auth_headers,
        )
        assert updated.json()["version"] == 2

        deleted = sync_client.delete("/api/saved_objects/dashboard/d1", headers=auth_headers)
        assert deleted.json() == {}

        missing = sync_client.get("/api/saved_objects/dashboard/d1", headers=auth_headers)
        assert missing.status_code == 404
        assert missing.json() == {
            "statusCode": 404,
            "error": "Not Found",
            "message": "Saved object [dashboard/d1] not found",
        }

    def test_create_with_generated_id(self, sync_client: TestClient, auth_headers):
        response = sync_client.post(
            "/api/saved_objects/search",
            json={"attributes": {"title": "errors"}},
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert response.json()["id"]

    def test_create_conflict(self, sync_client: TestClient, auth_headers):
        body = {"attributes": {"title": "Sales"}}
        sync_client.post("/api/saved_objects/dashboard/d1", json=body, headers=auth_headers)

        response = sync_client.post("/api/saved_objects/dashboard/d1", json=body, headers=auth_headers)

        assert response.status_code == 409
        assert response.json()["error"] == "Conflict"

    def test_bulk_get(self, sync_client: TestClient, auth_headers):
        sync_client.post(
            "/api/saved_objects/dashboard/d1",
            json={"attributes": {"title": "Sales"}},
            headers=auth_headers,
        )

        response = sync_client.post(
            "/api/saved_objects/_bulk_get",
            json=[{"type": "dashboard", "id": "d1"}, {"type": "dashboard", "id": "d2"}],
            headers=auth_headers,
        )

        found, missing = response.json()["saved_objects"]
        assert found["id"] == "d1"
        assert missing["error"]["statusCode"] == 404

    def test_find(self, sync_client: TestClient, auth_headers):
        sync_client.post(
            "/api/saved_objects/_bulk_create",
            json=[
                {"type": "dashboard", "id": "d1", "attributes": {"title": "Sales", "panels": 1}},
                {"type": "search", "id": "s1", "attributes": {"title": "Sales search"}},
            ],
            headers=auth_headers,
        )

        response = sync_client.get(
            "/api/saved_objects/_find",
            params={"type": "dashboard", "fields": "title"},
            headers=auth_headers,
        )

        data = response.json()
        assert data["total"] == 1
        assert data["saved_objects"][0]["attributes"] == {"title": "Sales"}
