from conftest import PASSWORD, count_users, register_and_login


def test_register_login_and_me(client):
    r = client.post(
        "/api/auth/register",
        json={"name": "Nino", "email": "Nino@Example.com", "password": PASSWORD},
    )
    assert r.status_code == 201
    body = r.json()
    assert body["success"] is True
    user = body["data"]["user"]
    assert user["email"] == "nino@example.com"
    assert user["plan"] == "FREE"
    assert "password" not in user

    r = client.post("/api/auth/login", json={"email": "nino@example.com", "password": PASSWORD})
    assert r.status_code == 200
    token = r.json()["data"]
    assert token["tokenType"] == "bearer"
    assert token["expiresIn"] > 0

    r = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token['accessToken']}"})
    assert r.status_code == 200
    assert r.json()["data"]["id"] == user["id"]


def test_duplicate_email_is_conflict(client):
    register_and_login(client, "dup@example.com")
    for email in ("dup@example.com", "  DUP@Example.COM"):
        r = client.post(
            "/api/auth/register",
            json={"name": "Other", "email": email, "password": PASSWORD},
        )
        assert r.status_code == 409
        assert r.json()["error"]["code"] == "EMAIL_EXISTS"
    assert count_users(client) == 1


def test_weak_password_rejected(client):
    r = client.post(
        "/api/auth/register",
        json={"name": "Weak", "email": "weak@example.com", "password": "alllowercase1"},
    )
    assert r.status_code == 400
    error = r.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert "password" in error["details"]


def test_wrong_password(client):
    register_and_login(client, "me@example.com")
    r = client.post("/api/auth/login", json={"email": "me@example.com", "password": "Wrong1234"})
    assert r.status_code == 401
    assert r.json()["error"]["code"] == "INVALID_CREDENTIALS"


def test_missing_and_invalid_tokens(client):
    r = client.get("/api/menus")
    assert r.status_code == 401
    assert r.json() == {
        "success": False,
        "error": {"code": "UNAUTHORIZED", "message": "You must be logged in"},
    }

    r = client.get("/api/menus", headers={"Authorization": "Bearer not-a-token"})
    assert r.status_code == 401
    assert r.json()["error"]["message"] == "Invalid or expired session"
