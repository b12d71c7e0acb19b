"""Pytest configuration and fixtures."""

import base64
import json
from typing import AsyncGenerator, Generator, Optional

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI
from fastapi.testclient import TestClient

from kbn_server.api.main import create_app
from kbn_server.core.config import Settings
from kbn_server.elasticsearch.cluster import ClusterClient
from kbn_server.saved_objects.store import SavedObjectsStore


ROLE_PREFIX = "/_security/role"


class FakeElasticsearch:
    """
    In-memory stand-in for the cluster REST API.

    Mounted behind ``httpx.MockTransport`` so the real ``ClusterClient``
    is exercised end to end.
    """

    def __init__(self):
        self.roles: dict[str, dict] = {}
        self.requests: list[httpx.Request] = []
        self.xpack_info = {
            "license": {"type": "platinum", "status": "active"},
            "features": {"security": {"available": True, "enabled": True}},
        }
        self.security_failure: Optional[tuple[int, dict]] = None
        self.unavailable = False

    @property
    def security_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path.startswith(ROLE_PREFIX)]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path == "/":
            if self.unavailable:
                return httpx.Response(
                    503, json={"error": {"type": "unavailable", "reason": "cluster down"}}
                )
            return httpx.Response(200, json={"version": {"number": "6.4.0"}})
        if path == "/_xpack":
            return httpx.Response(200, json=self.xpack_info)
        if path.startswith(ROLE_PREFIX):
            if self.security_failure is not None:
                status_code, body = self.security_failure
                return httpx.Response(status_code, json=body)
            return self._handle_role(request, path[len(ROLE_PREFIX) + 1:] or None)

        return httpx.Response(
            404, json={"error": {"type": "not_found", "reason": f"no handler for {path}"}}
        )

    def _handle_role(self, request: httpx.Request, name: Optional[str]) -> httpx.Response:
        if request.method == "GET":
            if name is None:
                return httpx.Response(200, json=self.roles)
            if name in self.roles:
                return httpx.Response(200, json={name: self.roles[name]})
            return httpx.Response(404, json={})

        if request.method == "PUT":
            created = name not in self.roles
            self.roles[name] = json.loads(request.content)
            return httpx.Response(200, json={"role": {"created": created}})

        if request.method == "DELETE":
            if self.roles.pop(name, None) is None:
                return httpx.Response(404, json={"found": False})
            return httpx.Response(200, json={"found": True})

        return httpx.Response(405, json={"error": "method not allowed"})


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Settings pointing at a throwaway database."""
    return Settings(
        saved_objects_db_path=str(tmp_path / "saved_objects.db"),
        elasticsearch_url="http://es.test:9200",
        elasticsearch_startup_retries=1,
        server_base_path="/kbn",
        log_format="console",
    )


@pytest.fixture
def fake_es() -> FakeElasticsearch:
    return FakeElasticsearch()


@pytest.fixture
def app(test_settings: Settings, fake_es: FakeElasticsearch) -> FastAPI:
    cluster = ClusterClient(test_settings, transport=httpx.MockTransport(fake_es))
    return create_app(test_settings, cluster=cluster)


@pytest.fixture
def sync_client(app: FastAPI) -> Generator[TestClient, None, None]:
    """Sync HTTP client; entering it runs startup and plugin init."""
    with TestClient(app) as client:
        yield client


@pytest.fixture
def auth_headers() -> dict[str, str]:
    """Headers for authenticated test requests."""
    token = base64.b64encode(b"elastic:changeme").decode()
    return {"Authorization": f"Basic {token}"}


@pytest_asyncio.fixture
async def saved_objects_store(tmp_path) -> AsyncGenerator[SavedObjectsStore, None]:
    """Open saved objects store for client-level tests."""
    store = SavedObjectsStore(tmp_path / "client.db")
    await store.open()
    yield store
    await store.close()


@pytest.fixture
def role_payload() -> dict:
    """Role payload touching every section."""
    return {
        "metadata": {"team": "marketing"},
        "elasticsearch": {
            "cluster": ["monitor"],
            "indices": [
                {
                    "names": ["logs-*"],
                    "privileges": ["read"],
                    "field_security": {"grant": ["*"], "except": ["secret"]},
                    "query": "",
                }
            ],
            "run_as": ["analyst"],
        },
        "kibana": {
            "global": ["read"],
            "space": {"marketing": ["all"], "sales": ["read"]},
        },
    }
