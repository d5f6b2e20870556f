import pytest

from tracker.models import Attachment, UserRole
from tracker.services import issues as issue_service


@pytest.fixture
def issue(repo, project, developer):
    return issue_service.create_issue(repo, developer, project.id, {"title": "Crash"})


def test_upload_download_delete(client, repo, issue, developer, auth_headers):
    headers = auth_headers(developer)
    upload = client.post(
        f"/api/issues/{issue.id}/attachments",
        files={"file": ("trace.log", b"stack trace", "text/plain")},
        headers=headers,
    )
    assert upload.status_code == 201
    body = upload.json()
    assert body["original_name"] == "trace.log"
    assert body["size"] == len(b"stack trace")

    stored = repo.load(Attachment)[0]
    assert stored.filename.endswith(".log")
    assert stored.filename != "trace.log"
    assert repo.upload_path(stored.filename).read_bytes() == b"stack trace"

    listed = client.get(f"/api/issues/{issue.id}/attachments", headers=headers).json()
    assert [a["id"] for a in listed] == [body["id"]]

    download = client.get(f"/api/attachments/{body['id']}", headers=headers)
    assert download.status_code == 200
    assert download.content == b"stack trace"

    deleted = client.delete(f"/api/attachments/{body['id']}", headers=headers)
    assert deleted.status_code == 204
    assert repo.load(Attachment) == []
    assert not repo.upload_path(stored.filename).exists()


def test_upload_rejects_oversized_file(client, repo, issue, developer, auth_headers, monkeypatch):
    from tracker.core.config import settings

    monkeypatch.setattr(settings, "max_upload_bytes", 8)
    resp = client.post(
        f"/api/issues/{issue.id}/attachments",
        files={"file": ("big.bin", b"0123456789", "application/octet-stream")},
        headers=auth_headers(developer),
    )
    assert resp.status_code == 400
    assert repo.load(Attachment) == []
    assert list(repo.uploads_dir.iterdir()) == []


def test_upload_requires_issue_permission(client, issue, make_user, auth_headers):
    outsider = make_user(UserRole.developer)
    resp = client.post(
        f"/api/issues/{issue.id}/attachments",
        files={"file": ("a.txt", b"a", "text/plain")},
        headers=auth_headers(outsider),
    )
    assert resp.status_code == 403


def test_delete_issue_removes_attachment_files(client, repo, issue, developer, auth_headers):
    headers = auth_headers(developer)
    client.post(
        f"/api/issues/{issue.id}/attachments",
        files={"file": ("a.txt", b"a", "text/plain")},
        headers=headers,
    )
    stored = repo.load(Attachment)[0]

    resp = client.delete(f"/api/issues/{issue.id}", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["deleted_attachments"] == 1
    assert not repo.upload_path(stored.filename).exists()
    assert client.get(f"/api/issues/{issue.id}", headers=headers).status_code == 404
