"""
Tests: HTTP API over the wizard, using FastAPI's TestClient with the
backend replaced by the in-memory fake.

Run with:
    pytest regulatory_intake/tests/test_api.py -v
"""

import asyncio

import httpx
import pytest
from fastapi.testclient import TestClient

from regulatory_intake.api import create_app
from regulatory_intake.api.routes import get_client_factory, get_session_store
from regulatory_intake.persistence.session_store import SessionStore
from regulatory_intake.services.api_client import BackendClient
from regulatory_intake.tests.fakes import BASE_URL, FakeBackend, full_address, sample_catalog

PDF = b"%PDF-1.7\n" + b"0" * 2048


@pytest.fixture
def store() -> SessionStore:
    return SessionStore(ttl_minutes=5)


@pytest.fixture
def tokens() -> list:
    return []


@pytest.fixture
def client(backend: FakeBackend, store: SessionStore, tokens: list):
    def factory(token):
        tokens.append(token)
        return backend.client()

    app = create_app()
    app.dependency_overrides[get_session_store] = lambda: store
    app.dependency_overrides[get_client_factory] = lambda: factory
    with TestClient(app) as test_client:
        yield test_client


def _start(client: TestClient, jurisdiction: str = "FR", **kwargs):
    return client.post("/api/workflows", json={"organization_id": "org_1", "jurisdiction": jurisdiction}, **kwargs)


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"


class TestWorkflowRoutes:
    def test_complete_walkthrough(self, client, backend, store, tokens):
        started = _start(client, jurisdiction="fr", headers={"Authorization": "Bearer user-token"})
        assert started.status_code == 200
        body = started.json()
        assert body["outcome"] == "ready"
        assert body["is_new_group"] is True
        assert body["session_id"].startswith("WIZ-")
        assert body["snapshot"]["current_requirement_id"] == "doc1"
        assert tokens == ["user-token"]
        sid = body["session_id"]

        attached = client.post(f"/api/workflows/{sid}/document", files={"file": ("passport.pdf", PDF, "application/pdf")})
        assert attached.status_code == 200
        assert attached.json()["steps"][0]["edited"] is True

        moved = client.post(f"/api/workflows/{sid}/next").json()
        assert moved["current_index"] == 1
        assert moved["steps"][0]["committed"] is True

        client.put(f"/api/workflows/{sid}/text", json={"value": "ACME SARL"})
        assert client.post(f"/api/workflows/{sid}/next").json()["current_index"] == 2

        client.put(f"/api/workflows/{sid}/address", json={"address": full_address()})
        finished = client.post(f"/api/workflows/{sid}/next").json()
        assert finished["state"] == "completed"

        assert len(backend.updates) == 3
        assert len(store) == 0
        assert client.get(f"/api/workflows/{sid}").status_code == 404

    def test_validation_error_is_in_the_snapshot(self, client):
        sid = _start(client).json()["session_id"]
        snapshot = client.post(f"/api/workflows/{sid}/next").json()

        assert snapshot["state"] == "at_step"
        assert snapshot["steps"][0]["error"]["kind"] == "validation"
        assert snapshot["steps"][0]["error"]["code"] == "required"

    def test_wrong_kind_edit_is_422(self, client):
        sid = _start(client).json()["session_id"]
        response = client.put(f"/api/workflows/{sid}/text", json={"value": "ACME"})
        assert response.status_code == 422

    def test_back_on_first_step(self, client):
        sid = _start(client).json()["session_id"]
        body = client.post(f"/api/workflows/{sid}/back").json()
        assert body["moved"] is False
        assert body["snapshot"]["current_index"] == 0

    def test_cancel_closes_the_session(self, client, store):
        sid = _start(client).json()["session_id"]
        snapshot = client.post(f"/api/workflows/{sid}/cancel").json()

        assert snapshot["state"] == "cancelled"
        assert sid not in store.list_sessions()
        assert client.post(f"/api/workflows/{sid}/next").status_code == 404

    def test_unknown_session(self, client):
        assert client.get("/api/workflows/WIZ-missing").status_code == 404


class TestCancelWhileSaving:
    def test_pending_update_completes_before_the_client_closes(self, store):
        backend = FakeBackend(catalog={"FR": [sample_catalog()[1]]})
        events = []

        class RecordingClient(BackendClient):
            async def aclose(self):
                events.append("closed")
                await super().aclose()

        async def scenario():
            reached, gate = asyncio.Event(), asyncio.Event()

            async def handler(request: httpx.Request) -> httpx.Response:
                if request.method != "PATCH":
                    return backend.handler(request)
                reached.set()
                await gate.wait()
                response = backend.handler(request)
                events.append("patched")
                return response

            app = create_app()
            app.dependency_overrides[get_session_store] = lambda: store
            app.dependency_overrides[get_client_factory] = lambda: lambda token: RecordingClient(
                base_url=BASE_URL, transport=httpx.MockTransport(handler)
            )
            transport = httpx.ASGITransport(app=app)
            async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as api:
                sid = (await _start_async(api)).json()["session_id"]
                await api.put(f"/api/workflows/{sid}/text", json={"value": "ACME SARL"})
                pending = asyncio.create_task(api.post(f"/api/workflows/{sid}/next"))
                await reached.wait()

                cancelled = await api.post(f"/api/workflows/{sid}/cancel")
                closed_before_release = list(events)
                gate.set()
                finished = await pending
            return cancelled.json(), closed_before_release, finished.json()

        cancelled, closed_before_release, finished = asyncio.run(scenario())

        assert cancelled["state"] == "cancelled"
        assert closed_before_release == []
        assert events == ["patched", "closed"]
        assert len(backend.updates) == 1
        assert finished["state"] == "cancelled"
        assert finished["steps"][0]["committed"] is False
        assert len(store) == 0


async def _start_async(api: httpx.AsyncClient):
    return await api.post("/api/workflows", json={"organization_id": "org_1", "jurisdiction": "FR"})


class TestStartErrors:
    def test_unknown_jurisdiction_is_422(self, client, store):
        response = _start(client, jurisdiction="ZZ")
        assert response.status_code == 422
        assert len(store) == 0

    def test_backend_failure_is_502(self, client, backend):
        backend.create_status = 500
        assert _start(client).status_code == 502

    def test_active_group_opens_no_session(self, client, backend, store):
        backend.add_group("org_1", "FR", status="active")
        body = _start(client).json()

        assert body["outcome"] == "already_complete"
        assert body["session_id"] is None
        assert body["snapshot"] is None
        assert len(store) == 0

    def test_rejected_group_is_blocked(self, client, backend):
        backend.add_group("org_1", "FR", status="rejected")
        assert _start(client).json()["outcome"] == "blocked"


class TestGroupRoutes:
    def test_status(self, client, backend):
        group = backend.add_group("org_1", "FR", requirements=[{"field": "doc1", "value": "d_1", "status": "approved"}])
        body = client.get(f"/api/groups/{group['id']}/status").json()

        assert body["id"] == group["id"]
        assert body["requirements"][0]["status"] == "approved"
        assert body["is_complete"] is False

    def test_unknown_group_is_404(self, client):
        assert client.get("/api/groups/grp_missing/status").status_code == 404

    def test_finalize(self, client, backend):
        group = backend.add_group("org_1", "FR", requirements=[{"field": "doc1", "value": "d_1", "status": "approved"}])
        body = client.post(f"/api/groups/{group['id']}/finalize").json()

        assert body["is_valid"] is False
        assert [m["field"] for m in body["missing_requirements"]] == ["name1", "addr1"]
