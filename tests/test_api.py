from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from voluntree.db.session import get_db
from voluntree.main import app
from voluntree.storage.blob import get_blob_store

API = "/api/v1/users"


@pytest.fixture
def client(session_factory, blob_store):
    def override_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_blob_store] = lambda: blob_store
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _register(client: TestClient, username: str, password: str = "secret1"):
    return client.post(
        f"{API}/register",
        data={
            "username": username,
            "email": f"{username}@example.com",
            "fullname": username.title(),
            "password": password,
            "interests": "environment,health",
            "locationCoordinates": "[2.35, 48.85]",
        },
        files={"avatar": ("avatar.png", b"\x89PNG avatar", "image/png")},
    )


def _login(client: TestClient, username: str, password: str = "secret1"):
    return client.post(f"{API}/login", json={"username": username, "password": password})


def test_health(client) -> None:
    response = client.get("/api/v1/health")

    assert response.status_code == 200
    assert response.json()["data"] == {"status": "ok"}


def test_register_returns_sanitized_user(client, blob_store) -> None:
    response = _register(client, "ada")

    assert response.status_code == 201
    body = response.json()
    assert body["statusCode"] == 201
    assert body["success"] is True
    user = body["data"]
    assert user["username"] == "ada"
    assert user["interests"] == ["environment", "health"]
    assert user["locationCoordinates"] == [2.35, 48.85]
    assert "passwordHash" not in user and "refreshTokenHash" not in user and "version" not in user
    assert list(blob_store.live) == ["blob-1"]


def test_register_without_avatar_is_rejected(client) -> None:
    response = client.post(
        f"{API}/register",
        data={"username": "ada", "email": "ada@example.com", "fullname": "Ada", "password": "secret1"},
    )

    assert response.status_code == 400
    assert response.json()["errorCode"] == "VALIDATION_ERROR"


def test_duplicate_registration_conflicts(client) -> None:
    _register(client, "ada")
    response = _register(client, "ada")

    assert response.status_code == 409
    body = response.json()
    assert body["success"] is False
    assert body["errorCode"] == "CONFLICT"
    assert body["data"] is None


def test_login_sets_cookies_and_authenticates(client) -> None:
    _register(client, "ada")
    response = _login(client, "ada")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["accessToken"] and data["refreshToken"]
    assert response.cookies.get("accessToken") == data["accessToken"]

    me = client.get(f"{API}/current-user")
    assert me.status_code == 200
    assert me.json()["data"]["username"] == "ada"


def test_login_without_password_is_validation_error(client) -> None:
    response = client.post(f"{API}/login", json={"username": "ada"})

    assert response.status_code == 400
    assert response.json()["errorCode"] == "VALIDATION_ERROR"


def test_protected_route_requires_token(client) -> None:
    response = client.get(f"{API}/current-user")

    assert response.status_code == 401
    assert response.json()["errorCode"] == "NOT_AUTHENTICATED"

    response = client.get(f"{API}/current-user", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401
    assert response.json()["errorCode"] == "INVALID_CREDENTIAL"


def test_refresh_rotation_over_http(client) -> None:
    _register(client, "ada")
    old_refresh = _login(client, "ada").json()["data"]["refreshToken"]

    rotated = client.post(f"{API}/refresh-token")
    assert rotated.status_code == 200
    assert rotated.json()["data"]["refreshToken"] != old_refresh

    client.cookies.clear()
    replay = client.post(f"{API}/refresh-token", headers={"Authorization": f"Bearer {old_refresh}"})
    assert replay.status_code == 401
    assert replay.json()["message"] == "refresh_token_mismatch"


def test_logout_clears_session(client) -> None:
    _register(client, "ada")
    tokens = _login(client, "ada").json()["data"]

    response = client.post(f"{API}/logout")
    assert response.status_code == 200

    client.cookies.clear()
    replay = client.post(f"{API}/refresh-token", headers={"Authorization": f"Bearer {tokens['refreshToken']}"})
    assert replay.status_code == 401


def test_change_password_same_value(client) -> None:
    _register(client, "ada")
    _login(client, "ada")

    response = client.post(f"{API}/change-password", json={"oldPassword": "secret1", "newPassword": "secret1"})

    assert response.status_code == 400
    assert response.json()["message"] == "new_password_must_differ"


def test_update_details(client) -> None:
    _register(client, "ada")
    _login(client, "ada")

    response = client.patch(f"{API}/update-details", json={"bio": "Counting engines", "location": "London"})
    assert response.status_code == 200
    assert response.json()["data"]["bio"] == "Counting engines"

    empty = client.patch(f"{API}/update-details", json={})
    assert empty.status_code == 400

    legacy = client.post(f"{API}/update-details", json={"fullname": "Ada King"})
    assert legacy.status_code == 200
    assert legacy.json()["data"]["fullname"] == "Ada King"


def test_update_avatar(client, blob_store) -> None:
    _register(client, "ada")
    _login(client, "ada")

    response = client.post(f"{API}/update-avatar", files={"avatar": ("new.png", b"new", "image/png")})

    assert response.status_code == 200
    assert response.json()["data"]["avatar"] == "https://cdn.test/blob-2"


def test_follow_profile_and_listings(client) -> None:
    _register(client, "ada")
    _register(client, "bob")
    _login(client, "ada")

    assert client.post(f"{API}/follow/bob").status_code == 200
    again = client.post(f"{API}/follow/bob")
    assert again.status_code == 409
    assert client.post(f"{API}/follow/ada").status_code == 400

    profile = client.get(f"{API}/profile/bob").json()["data"]
    assert profile["followersCount"] == 1
    assert profile["isFollowing"] is True

    followers = client.get(f"{API}/followers/bob").json()["data"]
    assert followers["total"] == 1
    assert followers["items"][0]["counterpart"]["username"] == "ada"

    assert client.post(f"{API}/unfollow/bob").status_code == 200
    assert client.post(f"{API}/unfollow/bob").status_code == 404
    assert client.get(f"{API}/followings/ada").json()["data"]["total"] == 0
