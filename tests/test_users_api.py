import pytest
from unittest.mock import MagicMock

from fastapi.testclient import TestClient
from prometheus_client import REGISTRY

from registration_service.domain.errors import StorageFailure
from registration_service.interfaces.http.limits import limiter
from registration_service.interfaces.http.routers.users import get_password_hasher, get_user_repository
from registration_service.main import app


def invalid_registrations() -> float:
    return REGISTRY.get_sample_value("registrations_total", {"outcome": "invalid"}) or 0.0


@pytest.fixture
def client(repo):
    """Тестовый клиент поверх репозитория в памяти, без хеширования и лимитов"""
    app.dependency_overrides[get_user_repository] = lambda: repo
    app.dependency_overrides[get_password_hasher] = lambda: None
    limiter.enabled = False
    yield TestClient(app)
    limiter.enabled = True
    app.dependency_overrides.clear()


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}
    assert client.get("/api/users/health").json() == {"status": "ok"}


def test_register_success(client, repo):
    response = client.post(
        "/api/users/register",
        json={"username": "john_doe", "password": "12345"},
    )
    assert response.status_code == 201
    data = response.json()
    assert data["username"] == "john_doe"
    assert data["role"] == "employee"
    assert isinstance(data["id"], int)
    assert "password" not in data
    assert repo.get_by_username("john_doe").password == "12345"


def test_register_ignores_requested_role(client):
    response = client.post(
        "/api/users/register",
        json={"username": "boss", "password": "secret", "role": "manager"},
    )
    assert response.status_code == 201
    assert response.json()["role"] == "employee"


def test_register_duplicate(client):
    body = {"username": "john_doe", "password": "12345"}
    assert client.post("/api/users/register", json=body).status_code == 201

    response = client.post("/api/users/register", json=body)
    assert response.status_code == 409
    assert "john_doe" in response.json()["detail"]


@pytest.mark.parametrize("body", [
    {"username": "", "password": "secret"},
    {"username": "alice", "password": ""},
])
def test_register_empty_fields(client, body):
    response = client.post("/api/users/register", json=body)
    assert response.status_code == 422
    assert isinstance(response.json()["detail"], str)


def test_register_missing_fields(client):
    """Ошибка схемы запроса отдается в том же формате {"detail": str}"""
    response = client.post("/api/users/register", json={"username": "alice"})
    assert response.status_code == 422
    detail = response.json()["detail"]
    assert isinstance(detail, str)
    assert "password" in detail


def test_register_schema_errors_counted_as_invalid(client):
    before = invalid_registrations()
    client.post("/api/users/register", json={"username": "alice", "password": None})
    client.post("/api/users/register", json={"username": "", "password": "secret"})
    assert invalid_registrations() == before + 2


def test_register_storage_failure():
    repo = MagicMock()
    repo.get_by_username.return_value = None
    repo.create.side_effect = StorageFailure("database is down")
    app.dependency_overrides[get_user_repository] = lambda: repo
    app.dependency_overrides[get_password_hasher] = lambda: None
    limiter.enabled = False
    try:
        response = TestClient(app).post(
            "/api/users/register",
            json={"username": "alice", "password": "secret"},
        )
    finally:
        limiter.enabled = True
        app.dependency_overrides.clear()
    assert response.status_code == 500
    assert response.json()["detail"] == "Storage unavailable"


def test_register_hashes_password(client, repo):
    from registration_service.infrastructure.security import PasswordHasher

    hasher = PasswordHasher()
    app.dependency_overrides[get_password_hasher] = lambda: hasher
    response = client.post(
        "/api/users/register",
        json={"username": "alice", "password": "secret"},
    )
    assert response.status_code == 201
    stored = repo.get_by_username("alice").password
    assert stored != "secret"
    assert hasher.context.verify("secret", stored)


def test_get_user(client):
    created = client.post(
        "/api/users/register",
        json={"username": "alice", "password": "secret"},
    ).json()
    response = client.get(f"/api/users/{created['id']}")
    assert response.status_code == 200
    assert response.json() == created


def test_get_user_not_found(client):
    response = client.get("/api/users/999")
    assert response.status_code == 404


def test_metrics_counts_registrations(client):
    client.post("/api/users/register", json={"username": "alice", "password": "secret"})
    client.post("/api/users/register", json={"username": "alice", "password": "secret"})
    body = client.get("/metrics").text
    assert 'registrations_total{outcome="created"}' in body
    assert 'registrations_total{outcome="duplicate"}' in body


def test_rate_limiting(client):
    limiter.enabled = True
    limiter.reset()
    responses = [
        client.post("/api/users/register", json={"username": f"user{i}", "password": "pw"})
        for i in range(61)
    ]
    limiter.reset()
    assert [r.status_code for r in responses[:60]] == [201] * 60
    assert responses[60].status_code == 429
    detail = responses[60].json()["detail"]
    assert isinstance(detail, str)
    assert detail.startswith("Rate limit exceeded")
