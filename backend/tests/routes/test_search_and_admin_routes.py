"""HTTP surface for search, the admin dashboard, health and metrics."""

from typing import List

import pytest

from app.api.dependencies import get_embedding_service
from app.main import fastapi_app as app
from app.services.search.embedding_service import EmbeddingService


class _DownProvider:
    def ensure_configured(self) -> None:
        return None

    async def embed(self, text: str) -> List[float]:
        raise ConnectionError("provider unreachable")

    def get_model_name(self) -> str:
        return "down"

    def get_dimensions(self) -> int:
        return 16


@pytest.fixture
def embedding_override(search_config, mock_embedding_provider, fresh_circuit):
    def _install(provider):
        service = EmbeddingService(provider=provider, config=search_config, circuit=fresh_circuit)
        app.dependency_overrides[get_embedding_service] = lambda: service
        return service

    return _install


def test_search_falls_back_to_keywords(client, test_mentor, other_mentor, embedding_override):
    embedding_override(_DownProvider())

    response = client.post("/api/v1/search", json={"query": "portfolio"})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["fallback"] is True
    assert body["message"] == "AI search not available, showing keyword results"
    assert [m["username"] for m in body["data"]] == ["karan"]


def test_search_semantic_results(
    client, db, test_mentor, embedding_override, mock_embedding_provider
):
    from app.models.mentor import MentorProfile

    profile = db.get(MentorProfile, test_mentor.id)
    profile.embedding = mock_embedding_provider.generate("system design")
    db.commit()
    embedding_override(mock_embedding_provider)

    body = client.post("/api/v1/search", json={"query": "System Design"}).json()

    assert body["fallback"] is False
    assert body["data"][0]["id"] == test_mentor.id
    assert body["data"][0]["similarity"] == pytest.approx(1.0)


def test_search_requires_query(client, embedding_override, mock_embedding_provider):
    embedding_override(mock_embedding_provider)

    response = client.post("/api/v1/search", json={"query": "  "})

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "BAD_REQUEST"


def test_admin_metrics(client, test_mentor, test_student, auth_headers_admin):
    response = client.get("/api/v1/admin/metrics", headers=auth_headers_admin)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["total_mentors"] == 1
    assert data["total_students"] == 1
    assert data["total_bookings"] == 0


def test_admin_metrics_forbidden_for_students(client, auth_headers_student):
    response = client.get("/api/v1/admin/metrics", headers=auth_headers_student)

    assert response.status_code == 403
    assert response.json()["error"]["message"] == "Admin access required"


def test_health(client):
    body = client.get("/api/v1/health").json()

    assert body["status"] == "healthy"
    assert body["database"] == "ok"


def test_prometheus_endpoint_exposes_http_metrics(client):
    client.get("/api/v1/health")

    response = client.get("/api/v1/metrics/prometheus")

    assert response.status_code == 200
    assert "matepeak_http_requests_total" in response.text
