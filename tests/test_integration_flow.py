from tracker.models import Notification


def test_project_issue_sprint_flow(client, repo, manager, developer, auth_headers):
    headers = auth_headers(manager)

    project_resp = client.post(
        "/api/projects/",
        json={"name": "Alpha", "key": "alp", "description": "Demo project"},
        headers=headers,
    )
    assert project_resp.status_code == 201
    project = project_resp.json()
    assert project["key"] == "ALP"
    assert project["owner_id"] == manager.id

    issue_resp = client.post(
        f"/api/projects/{project['id']}/issues",
        json={"title": "Bug 1", "assignee": developer.id, "labels": "ui,api"},
        headers=headers,
    )
    assert issue_resp.status_code == 201
    issue = issue_resp.json()
    assert issue["status"] == "To Do"
    assert issue["labels"] == ["ui", "api"]

    dev_headers = auth_headers(developer)
    progress = client.patch(
        f"/api/issues/{issue['id']}", json={"status": "In Progress"}, headers=dev_headers
    )
    assert progress.status_code == 200
    done = client.patch(f"/api/issues/{issue['id']}", json={"status": "Done"}, headers=dev_headers)
    assert done.json()["done_at"] is not None
    back = client.patch(
        f"/api/issues/{issue['id']}", json={"status": "In Progress"}, headers=dev_headers
    )
    assert back.json()["done_at"] is None

    bad = client.patch(f"/api/issues/{issue['id']}", json={"status": "Review"}, headers=dev_headers)
    assert bad.status_code == 400
    assert bad.json()["error"]["code"] == "invalid_request"

    sprint_resp = client.post(
        f"/api/projects/{project['id']}/sprints", json={"name": "Sprint 1"}, headers=headers
    )
    assert sprint_resp.status_code == 201
    sprint = sprint_resp.json()
    assert sprint["status"] == "planning"

    added = client.post(
        f"/api/sprints/{sprint['id']}/issues", json={"issue_id": issue["id"]}, headers=dev_headers
    )
    assert added.status_code == 200
    assert added.json()["sprint_id"] == sprint["id"]

    started = client.post(f"/api/sprints/{sprint['id']}/start", headers=headers)
    assert started.status_code == 200
    assert started.json()["status"] == "active"
    assert started.json()["start_date"] is not None
    again = client.post(f"/api/sprints/{sprint['id']}/start", headers=headers)
    assert again.status_code == 400

    board = client.get(
        f"/api/projects/{project['id']}/board", params={"sprint_id": sprint["id"]}, headers=headers
    ).json()
    assert list(board) == ["To Do", "In Progress", "Done"]
    assert [i["id"] for i in board["In Progress"]] == [issue["id"]]

    burndown = client.get(f"/api/sprints/{sprint['id']}/burndown", headers=headers)
    assert burndown.status_code == 200
    assert burndown.json()[-1]["remaining"] == 1

    closed = client.post(f"/api/sprints/{sprint['id']}/close", headers=headers)
    assert closed.status_code == 200
    assert closed.json()["moved_issues"] == 1
    assert closed.json()["sprint"]["status"] == "closed"

    backlog = client.get(f"/api/projects/{project['id']}/backlog", headers=headers).json()
    assert [i["id"] for i in backlog] == [issue["id"]]

    restart = client.post(f"/api/sprints/{sprint['id']}/start", headers=headers)
    assert restart.status_code == 400
    assert restart.json()["error"]["message"] == "Cannot start a closed sprint"


def test_workflow_endpoints(client, project, manager, developer, auth_headers):
    headers = auth_headers(manager)
    current = client.get(f"/api/projects/{project.id}/workflow", headers=headers)
    assert current.json()["statuses"] == ["To Do", "In Progress", "Done"]

    client.post(f"/api/projects/{project.id}/issues", json={"title": "Stuck"}, headers=headers)
    updated = client.put(
        f"/api/projects/{project.id}/workflow",
        json={"statuses": ["Open", "Review", "Done"], "transitions": {}},
        headers=headers,
    )
    assert updated.status_code == 200
    assert updated.json()["statuses"] == ["Open", "Review", "Done"]
    assert updated.json()["stranded_issues"] == 1

    empty = client.put(f"/api/projects/{project.id}/workflow", json={"statuses": []}, headers=headers)
    assert empty.status_code == 400

    forbidden = client.put(
        f"/api/projects/{project.id}/workflow",
        json={"statuses": ["Open"]},
        headers=auth_headers(developer),
    )
    assert forbidden.status_code == 403
    assert forbidden.json()["error"]["code"] == "forbidden"


def test_project_delete_cascade_over_http(client, repo, project, manager, admin, auth_headers):
    headers = auth_headers(manager)
    for n in range(3):
        client.post(f"/api/projects/{project.id}/issues", json={"title": f"Bug {n}"}, headers=headers)
    client.post(f"/api/projects/{project.id}/sprints", json={"name": "Sprint 1"}, headers=headers)

    denied = client.delete(f"/api/projects/{project.id}", headers=headers)
    assert denied.status_code == 403

    resp = client.delete(f"/api/projects/{project.id}", headers=auth_headers(admin))
    assert resp.status_code == 200
    body = resp.json()
    assert body["deleted_issues"] == 3
    assert body["deleted_sprints"] == 1
    assert body["project"]["id"] == project.id

    assert client.get(f"/api/projects/{project.id}", headers=headers).status_code == 404
    broadcast = [n for n in repo.load(Notification) if n.user_id == manager.id]
    assert broadcast[-1].message == f'Project "Alpha" was deleted by {admin.email}'


def test_issue_list_filters_and_pagination(client, project, developer, auth_headers):
    headers = auth_headers(developer)
    for title, priority in (("Crash", "High"), ("Typo", "Low"), ("Crash again", "High")):
        client.post(
            "/api/issues/",
            json={"project_id": project.id, "title": title, "priority": priority},
            headers=headers,
        )

    high = client.get("/api/issues/", params={"priority": "High", "sort": "title"}, headers=headers).json()
    assert [i["title"] for i in high] == ["Crash", "Crash again"]

    page = client.get(
        f"/api/projects/{project.id}/issues", params={"limit": 2, "page": 2}, headers=headers
    ).json()
    assert len(page) == 1

    search = client.get("/api/issues/", params={"search": "typo"}, headers=headers).json()
    assert [i["title"] for i in search] == ["Typo"]


def test_notifications_endpoints(client, repo, project, manager, developer, auth_headers):
    client.post(
        f"/api/projects/{project.id}/issues",
        json={"title": "Assigned", "assignee": developer.id},
        headers=auth_headers(manager),
    )
    headers = auth_headers(developer)
    listed = client.get("/api/notifications/", headers=headers).json()
    assert [n["message"] for n in listed] == ['New issue "Assigned" created in project Alpha']
    assert listed[0]["read"] is False

    read = client.post(f"/api/notifications/{listed[0]['id']}/read", headers=headers)
    assert read.json()["read"] is True
    assert client.post("/api/notifications/missing/read", headers=headers).status_code == 404
    assert client.post("/api/notifications/read-all", headers=headers).json() == {"updated": 0}
