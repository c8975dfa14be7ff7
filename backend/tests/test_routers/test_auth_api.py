"""
HTTP tests for registration, login and the current-user endpoint.
"""

from fastapi.testclient import TestClient


def test_health(client: TestClient):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_register_returns_token(client: TestClient):
    response = client.post(
        "/api/auth/register",
        json={"username": "alice", "email": "alice@example.com", "password": "alice1234"},
    )
    assert response.status_code == 201
    data = response.json()
    assert data["token_type"] == "bearer"
    assert data["user"]["username"] == "alice"
    assert data["user"]["role"] == "user"


def test_register_duplicate(client: TestClient, test_user):
    response = client.post(
        "/api/auth/register",
        json={"username": "testuser", "email": "new@example.com", "password": "alice1234"},
    )
    assert response.status_code == 409
    assert "correlation_id" in response.json()


def test_register_weak_password(client: TestClient):
    response = client.post(
        "/api/auth/register",
        json={"username": "bob", "email": "bob@example.com", "password": "short"},
    )
    assert response.status_code == 400


def test_login_and_me(client: TestClient, test_user):
    response = client.post(
        "/api/auth/login",
        json={"username_or_email": "testuser", "password": "testpassword123"},
    )
    assert response.status_code == 200
    token = response.json()["access_token"]

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["id"] == test_user.id


def test_login_wrong_password(client: TestClient, test_user):
    response = client.post(
        "/api/auth/login",
        json={"username_or_email": "testuser", "password": "wrongpass1"},
    )
    assert response.status_code == 401


def test_me_requires_token(client: TestClient):
    response = client.get("/api/auth/me")
    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Bearer"


def test_me_rejects_garbage_token(client: TestClient):
    response = client.get(
        "/api/auth/me", headers={"Authorization": "Bearer not-a-token"}
    )
    assert response.status_code == 401
