import pytest

from conftest import STRONG_PASSWORD
from dreamer_api.create_admin import create_admin
from dreamer_api.models.user import User, UserStatus

ADMIN_PASSWORD = "Admin@12345"


def _bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def _login(client, email, password):
    response = client.post("/api/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200
    return response.json()


@pytest.fixture
def admin_headers(client, session_factory, password_hasher):
    db = session_factory()
    try:
        create_admin(db, password_hasher, "admin@example.com", ADMIN_PASSWORD)
        db.commit()
    finally:
        db.close()
    return _bearer(_login(client, "admin@example.com", ADMIN_PASSWORD)["accessToken"])


@pytest.fixture
def alice(client, email_sender):
    response = client.post(
        "/api/auth/register",
        json={"email": "alice@example.com", "password": STRONG_PASSWORD, "firstName": "Alice", "lastName": "Smith"},
    )
    client.post("/api/auth/verify-email", json={"token": email_sender.last_token("verify-email")})
    tokens = _login(client, "alice@example.com", STRONG_PASSWORD)
    return {"id": response.json()["userId"], **tokens}


def test_create_admin_promotes_existing_user(session_factory, password_hasher):
    db = session_factory()
    try:
        user_id, outcome = create_admin(db, password_hasher, "root@example.com", ADMIN_PASSWORD)
        assert outcome == "created"
        same_id, outcome = create_admin(db, password_hasher, "root@example.com", ADMIN_PASSWORD, role="super_admin")
        assert (same_id, outcome) == (user_id, "updated")
        assert db.query(User).filter(User.id == user_id).one().role == "super_admin"
    finally:
        db.close()


def test_create_admin_rejects_weak_password_and_non_staff_role(session_factory, password_hasher):
    db = session_factory()
    try:
        with pytest.raises(ValueError):
            create_admin(db, password_hasher, "root@example.com", "weak")
        with pytest.raises(ValueError):
            create_admin(db, password_hasher, "root@example.com", ADMIN_PASSWORD, role="client")
    finally:
        db.close()


def test_list_users_requires_staff_role(client, admin_headers, alice):
    forbidden = client.get("/api/users", headers=_bearer(alice["accessToken"]))
    assert forbidden.status_code == 403
    assert forbidden.json()["code"] == "INSUFFICIENT_PERMISSIONS"

    response = client.get("/api/users", headers=admin_headers)
    assert response.status_code == 200
    assert {u["email"] for u in response.json()} == {"admin@example.com", "alice@example.com"}


def test_users_can_only_read_themselves(client, admin_headers, alice):
    own = client.get(f"/api/users/{alice['id']}", headers=_bearer(alice["accessToken"]))
    assert own.status_code == 200
    assert own.json()["email"] == "alice@example.com"

    admins = client.get("/api/users", headers=admin_headers).json()
    admin_id = next(u["id"] for u in admins if u["email"] == "admin@example.com")
    assert client.get(f"/api/users/{admin_id}", headers=_bearer(alice["accessToken"])).status_code == 403

    missing = client.get("/api/users/does-not-exist", headers=admin_headers)
    assert missing.status_code == 404
    assert missing.json()["code"] == "USER_NOT_FOUND"


def test_suspending_user_revokes_access(client, admin_headers, alice):
    response = client.patch(
        f"/api/users/{alice['id']}/status",
        headers=admin_headers,
        json={"status": UserStatus.SUSPENDED},
    )
    assert response.status_code == 200
    assert response.json()["status"] == "suspended"

    refresh = client.post("/api/auth/refresh", json={"refreshToken": alice["refreshToken"]})
    assert refresh.status_code == 401
    me = client.get("/api/auth/me", headers=_bearer(alice["accessToken"]))
    assert me.status_code == 403
    assert me.json()["code"] == "ACCOUNT_INACTIVE"


def test_unknown_status_is_rejected(client, admin_headers, alice):
    response = client.patch(f"/api/users/{alice['id']}/status", headers=admin_headers, json={"status": "banned"})

    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_delete_user_keeps_row(client, admin_headers, alice, session_factory):
    response = client.delete(f"/api/users/{alice['id']}", headers=admin_headers)
    assert response.status_code == 200

    db = session_factory()
    try:
        assert db.query(User).filter(User.id == alice["id"]).one().status == UserStatus.DELETED
    finally:
        db.close()

    login = client.post("/api/auth/login", json={"email": "alice@example.com", "password": STRONG_PASSWORD})
    assert login.status_code == 403


def test_admin_cannot_delete_self(client, admin_headers):
    admin_id = client.get("/api/auth/me", headers=admin_headers).json()["user"]["id"]

    response = client.delete(f"/api/users/{admin_id}", headers=admin_headers)

    assert response.status_code == 403
