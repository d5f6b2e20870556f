def test_register_login_me_logout(client):
    register = client.post(
        "/api/auth/register",
        json={"email": "New.User@example.com", "password": "secret1"},
    )
    assert register.status_code == 201
    assert register.json()["email"] == "new.user@example.com"
    assert "password_hash" not in register.json()

    login = client.post(
        "/api/auth/login", json={"email": "new.user@example.com", "password": "secret1"}
    )
    assert login.status_code == 200
    token = login.json()["token"]
    headers = {"Authorization": f"Bearer {token}"}

    me = client.get("/api/auth/me", headers=headers)
    assert me.status_code == 200
    assert me.json()["role"] == "developer"

    assert client.post("/api/auth/logout", headers=headers).status_code == 204
    assert client.get("/api/auth/me", headers=headers).status_code == 401


def test_register_duplicate_email(client):
    payload = {"email": "dup@example.com", "password": "secret1"}
    assert client.post("/api/auth/register", json=payload).status_code == 201
    resp = client.post("/api/auth/register", json=payload)
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "invalid_request"


def test_register_short_password(client):
    resp = client.post("/api/auth/register", json={"email": "a@example.com", "password": "123"})
    assert resp.status_code == 422


def test_login_wrong_password(client):
    client.post("/api/auth/register", json={"email": "b@example.com", "password": "secret1"})
    resp = client.post("/api/auth/login", json={"email": "b@example.com", "password": "nope"})
    assert resp.status_code == 401
    assert resp.json()["error"]["message"] == "Invalid credentials"


def test_users_list_is_admin_only_and_masks_email(client, admin, developer, auth_headers):
    resp = client.get("/api/users/", headers=auth_headers(admin))
    assert resp.status_code == 200
    emails = {u["email"] for u in resp.json()}
    assert all("***@" in email for email in emails)

    assert client.get("/api/users/", headers=auth_headers(developer)).status_code == 403
