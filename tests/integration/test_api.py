"""Integration tests for the FastAPI REST API."""

from __future__ import annotations

import base64

import pytest
from httpx import ASGITransport, AsyncClient

from processrepo.api.app import create_app
from processrepo.api.deps import init_repository_service, reset_repository_service
from processrepo.service.clock import FixedClock
from processrepo.service.repository import create_repository_service
from processrepo.settings import Settings
from tests.conftest import ORDER_PROCESS, ORDER_PROCESS_V2, SAMPLE_MANIFEST_YAML, START


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(START)


@pytest.fixture
def app(clock: FixedClock):
    settings = Settings()
    app = create_app(settings=settings)
    # Manually init RepositoryService (ASGITransport doesn't trigger lifespan)
    init_repository_service(create_repository_service(settings, clock=clock))
    yield app
    reset_repository_service()


@pytest.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


def _body(content: str = ORDER_PROCESS, **extra: object) -> dict:
    return {
        "name": "orders",
        "resources": [{"name": "orders.bpmn20.xml", "content": content}],
        **extra,
    }


class TestHealthEndpoint:
    async def test_health(self, client: AsyncClient) -> None:
        response = await client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert "version" in data
        assert "X-Request-Duration-Ms" in response.headers


class TestCreateDeployment:
    async def test_create(self, client: AsyncClient) -> None:
        response = await client.post("/deployments", json=_body())
        assert response.status_code == 201
        data = response.json()
        assert data["name"] == "orders"
        assert data["version"] == 1
        assert data["tenant_id"] == ""
        assert data["resources"][0]["name"] == "orders.bpmn20.xml"
        (definition,) = data["process_definitions"]
        assert definition["key"] == "orderProcess"
        assert definition["suspended"] is False

    async def test_duplicate_returns_existing_with_200(self, client: AsyncClient) -> None:
        first = await client.post("/deployments", json=_body(enable_duplicate_filtering=True))
        second = await client.post("/deployments", json=_body(enable_duplicate_filtering=True))
        assert first.status_code == 201
        assert second.status_code == 200
        assert second.json()["id"] == first.json()["id"]

        listing = await client.get("/deployments")
        assert len(listing.json()["deployments"]) == 1

    async def test_manifest_yaml_and_upgrade(self, client: AsyncClient) -> None:
        first = await client.post(
            "/deployments",
            json=_body(enable_duplicate_filtering=True, project_manifest_yaml=SAMPLE_MANIFEST_YAML),
        )
        second = await client.post(
            "/deployments",
            json=_body(
                ORDER_PROCESS_V2,
                enable_duplicate_filtering=True,
                project_manifest={"version": "1.1.0", "createdBy": "alice"},
            ),
        )
        assert first.json()["project_release_version"] == "1.0.0"
        assert second.status_code == 201
        assert second.json()["version"] == 2

    async def test_base64_resource(self, client: AsyncClient) -> None:
        encoded = base64.b64encode(ORDER_PROCESS.encode()).decode()
        response = await client.post(
            "/deployments",
            json={
                "name": "orders",
                "resources": [
                    {"name": "orders.bpmn20.xml", "content": encoded, "encoding": "base64"}
                ],
            },
        )
        assert response.status_code == 201
        assert response.json()["resources"][0]["size"] == len(ORDER_PROCESS.encode())

    async def test_invalid_base64(self, client: AsyncClient) -> None:
        response = await client.post(
            "/deployments",
            json={
                "name": "orders",
                "resources": [{"name": "x.bpmn", "content": "!!!", "encoding": "base64"}],
            },
        )
        assert response.status_code == 422

    async def test_compilation_error(self, client: AsyncClient) -> None:
        response = await client.post("/deployments", json=_body("<definitions"))
        assert response.status_code == 422
        assert response.json()["detail"]["resource"] == "orders.bpmn20.xml"
        listing = await client.get("/deployments")
        assert listing.json()["deployments"] == []

    async def test_schema_validation_can_be_disabled(self, client: AsyncClient) -> None:
        plain = (
            '<root xmlns="http://www.omg.org/spec/BPMN/20100524/MODEL">'
            '<process id="p"/></root>'
        )
        rejected = await client.post("/deployments", json=_body(plain))
        accepted = await client.post(
            "/deployments", json=_body(plain, bpmn20_xsd_validation_enabled=False)
        )
        assert rejected.status_code == 422
        assert accepted.status_code == 201

    async def test_invalid_manifest(self, client: AsyncClient) -> None:
        response = await client.post(
            "/deployments", json=_body(project_manifest_yaml="name: missing-version\n")
        )
        assert response.status_code == 422

    async def test_enforced_version_must_be_positive(self, client: AsyncClient) -> None:
        response = await client.post("/deployments", json=_body(enforced_app_version=0))
        assert response.status_code == 422


class TestDeploymentQueries:
    async def test_get_and_delete(self, client: AsyncClient) -> None:
        created = (await client.post("/deployments", json=_body())).json()
        fetched = await client.get(f"/deployments/{created['id']}")
        assert fetched.status_code == 200
        assert fetched.json()["process_definitions"] == created["process_definitions"]

        deleted = await client.delete(f"/deployments/{created['id']}")
        assert deleted.status_code == 204
        assert (await client.get(f"/deployments/{created['id']}")).status_code == 404
        assert (await client.delete(f"/deployments/{created['id']}")).status_code == 404

    async def test_list_filters_by_tenant(self, client: AsyncClient) -> None:
        await client.post("/deployments", json=_body(tenant_id="acme"))
        await client.post("/deployments", json=_body())
        response = await client.get("/deployments", params={"tenant_id": "acme"})
        deployments = response.json()["deployments"]
        assert [d["tenant_id"] for d in deployments] == ["acme"]


class TestActivationEndpoints:
    async def test_scheduled_activation_via_jobs(
        self, client: AsyncClient, clock: FixedClock
    ) -> None:
        created = await client.post(
            "/deployments", json=_body(activation_date="2024-03-02T09:00:00Z")
        )
        definition = created.json()["process_definitions"][0]
        assert definition["suspended"] is True

        jobs = (await client.get("/jobs")).json()["jobs"]
        assert [j["kind"] for j in jobs] == ["activate-process-definition"]

        none_due = await client.post("/jobs/execute-due")
        assert none_due.json() == {"executed": 0}

        clock.set(clock.now().replace(day=2))
        executed = await client.post("/jobs/execute-due")
        assert executed.json() == {"executed": 1}

        fetched = await client.get(f"/process-definitions/{definition['id']}")
        assert fetched.json()["suspended"] is False

    async def test_definition_listing_and_404(self, client: AsyncClient) -> None:
        await client.post("/deployments", json=_body())
        listing = await client.get("/process-definitions", params={"key": "orderProcess"})
        assert len(listing.json()["process_definitions"]) == 1
        missing = await client.get("/process-definitions/nope:1:1")
        assert missing.status_code == 404

    async def test_suspend_and_activate(self, client: AsyncClient) -> None:
        created = (await client.post("/deployments", json=_body())).json()
        definition_id = created["process_definitions"][0]["id"]

        suspended = await client.post(f"/process-definitions/{definition_id}/suspend")
        assert suspended.status_code == 200
        assert suspended.json()["suspended"] is True

        again = await client.post(f"/process-definitions/{definition_id}/suspend")
        assert again.status_code == 409

        activated = await client.post(f"/process-definitions/{definition_id}/activate")
        assert activated.json()["suspended"] is False

        missing = await client.post("/process-definitions/nope:1:1/activate")
        assert missing.status_code == 404

    async def test_scheduled_suspend_creates_job(self, client: AsyncClient) -> None:
        created = (await client.post("/deployments", json=_body())).json()
        definition_id = created["process_definitions"][0]["id"]

        response = await client.post(
            f"/process-definitions/{definition_id}/suspend",
            json={"effective_date": "2024-03-05T00:00:00Z"},
        )
        assert response.json()["suspended"] is False
        jobs = (await client.get("/jobs", params={"process_definition_id": definition_id})).json()
        assert [j["kind"] for j in jobs["jobs"]] == ["suspend-process-definition"]
