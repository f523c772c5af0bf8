from datetime import datetime, timedelta, timezone

from fastapi.testclient import TestClient

from services.auth import SessionStore, session_store


def test_signup_signs_user_in(client: TestClient) -> None:
    response = client.post(
        "/api/v1/auth/signup", json={"email": "New.User@Example.com", "password": "secret123"}
    )
    assert response.status_code == 201
    body = response.json()
    assert body["token_type"] == "bearer"
    assert body["user"]["email"] == "new.user@example.com"
    assert body["user"]["roles"] == ["user"]
    assert len(session_store) == 1


def test_signup_rejects_short_password(client: TestClient) -> None:
    response = client.post("/api/v1/auth/signup", json={"email": "a@example.com", "password": "12345"})
    assert response.status_code == 400
    assert "at least 6" in response.json()["detail"]


def test_signup_rejects_duplicate_email(client: TestClient, sign_up) -> None:
    sign_up("dup@example.com")
    response = client.post("/api/v1/auth/signup", json={"email": "DUP@example.com", "password": "secret123"})
    assert response.status_code == 409


def test_signin_success_and_failure(client: TestClient, sign_up) -> None:
    sign_up("me@example.com", "secret123")

    ok = client.post("/api/v1/auth/signin", json={"email": "me@example.com", "password": "secret123"})
    assert ok.status_code == 200
    assert ok.json()["access_token"]

    bad = client.post("/api/v1/auth/signin", json={"email": "me@example.com", "password": "wrong-pass"})
    assert bad.status_code == 400
    assert bad.json()["detail"] == "Incorrect email or password"


def test_login_success(client: TestClient, sign_up) -> None:
    sign_up("form@example.com", "secret123")
    response = client.post("/token", data={"username": "form@example.com", "password": "secret123"})
    assert response.status_code == 200
    assert "access_token" in response.json()


def test_login_failure(client: TestClient) -> None:
    response = client.post("/token", data={"username": "wrong@example.com", "password": "wrong"})
    assert response.status_code == 400


def test_protected_route(client: TestClient, owner) -> None:
    response = client.get("/users/me", headers=owner["headers"])
    assert response.status_code == 200
    assert response.json()["email"] == "owner@example.com"


def test_protected_route_requires_token(client: TestClient) -> None:
    assert client.get("/users/me").status_code == 401


def test_invalid_token_rejected(client: TestClient) -> None:
    response = client.get("/users/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid token"


def test_signout_invalidates_session(client: TestClient, owner) -> None:
    response = client.post("/api/v1/auth/signout", headers=owner["headers"])
    assert response.status_code == 200
    assert response.json()["success"] is True

    after = client.get("/users/me", headers=owner["headers"])
    assert after.status_code == 401
    assert after.json()["detail"] == "Session expired or invalid"


def test_current_session(client: TestClient, owner) -> None:
    anonymous = client.get("/api/v1/auth/session")
    assert anonymous.json() == {"session": None}

    signed_in = client.get("/api/v1/auth/session", headers=owner["headers"])
    session = signed_in.json()["session"]
    assert session["user"]["id"] == owner["user_id"]

    client.post("/api/v1/auth/signout", headers=owner["headers"])
    assert client.get("/api/v1/auth/session", headers=owner["headers"]).json() == {"session": None}


def test_auth_health(client: TestClient, owner) -> None:
    response = client.get("/api/v1/auth/health")
    assert response.status_code == 200
    assert response.json()["active_sessions"] == 1


def test_roles(db_session, owner) -> None:
    from models.database.user import User
    from services.auth_service import auth_service
    from shared.enums import AppRole

    user = db_session.get(User, owner["user_id"])
    assert auth_service.has_role(user, AppRole.USER)
    assert not auth_service.has_role(user, AppRole.ADMIN)

    auth_service.grant_role(db_session, user, AppRole.ADMIN)
    auth_service.grant_role(db_session, user, AppRole.ADMIN)
    db_session.refresh(user)
    assert sorted(grant.role for grant in user.roles) == ["admin", "user"]


def test_current_session_looks_session_up_once(client: TestClient, owner, monkeypatch) -> None:
    real_get = session_store.get
    calls = []

    def expires_after_first_lookup(session_id: str):
        calls.append(session_id)
        return real_get(session_id) if len(calls) == 1 else None

    monkeypatch.setattr(session_store, "get", expires_after_first_lookup)

    response = client.get("/api/v1/auth/session", headers=owner["headers"])

    assert response.status_code == 200
    assert response.json()["session"]["user"]["id"] == owner["user_id"]
    assert len(calls) == 1


def test_expired_sessions_purged_on_create() -> None:
    store = SessionStore()
    stale_id, _ = store.create("u1", expire_minutes=5)
    store._sessions[stale_id]["expires_at"] = datetime.now(timezone.utc) - timedelta(seconds=1)

    fresh_id, _ = store.create("u2", expire_minutes=5)

    assert len(store) == 1
    assert store.get(fresh_id)["user_id"] == "u2"
    assert store.get(stale_id) is None
