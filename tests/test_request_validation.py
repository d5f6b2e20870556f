def test_rejects_non_json_content_type(client):
    resp = client.post(
        "/api/auth/register",
        content="not-json",
        headers={"Content-Type": "text/plain"},
    )
    assert resp.status_code == 415
    assert resp.json()["error"]["code"] == "unsupported_media_type"


def test_body_size_limit(client):
    large = "a" * 1_000_001
    payload = f'{{"blob":"{large}"}}'
    resp = client.post(
        "/api/auth/register",
        content=payload,
        headers={"Content-Type": "application/json"},
    )
    assert resp.status_code == 413
    assert resp.json()["error"]["code"] == "payload_too_large"


def test_sort_whitelist_ignores_unknown(client, repo, manager, auth_headers):
    from tracker.services import projects as project_service

    project_service.create_project(repo, manager, name="Alpha", key="ALP")
    project_service.create_project(repo, manager, name="Beta", key="BET")

    resp = client.get("/api/projects/", params={"sort": "unknown"}, headers=auth_headers(manager))
    assert resp.status_code == 200
    assert len(resp.json()) == 2


def test_sort_by_name_descending(client, repo, manager, auth_headers):
    from tracker.services import projects as project_service

    project_service.create_project(repo, manager, name="Alpha", key="ALP")
    project_service.create_project(repo, manager, name="Beta", key="BET")

    resp = client.get("/api/projects/", params={"sort": "-name"}, headers=auth_headers(manager))
    assert [p["name"] for p in resp.json()] == ["Beta", "Alpha"]


def test_sort_rejects_invalid_characters(client, developer, auth_headers):
    resp = client.get(
        "/api/projects/", params={"sort": "name;drop"}, headers=auth_headers(developer)
    )
    assert resp.status_code == 422
    assert resp.json()["error"]["code"] == "validation_error"


def test_missing_token_is_unauthorized(client):
    resp = client.get("/api/projects/")
    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "http_401"


def test_unknown_token_is_unauthorized(client):
    resp = client.get("/api/projects/", headers={"Authorization": "Bearer nope"})
    assert resp.status_code == 401


def test_domain_errors_use_error_envelope(client, developer, auth_headers):
    resp = client.get("/api/projects/missing", headers=auth_headers(developer))
    assert resp.status_code == 404
    body = resp.json()["error"]
    assert body["code"] == "not_found"
    assert body["message"] == "Project not found"
    assert body["request_id"]
