from fastapi.testclient import TestClient
from tracker.main import app

client = TestClient(app)


def test_live_health():
    resp = client.get("/health/live")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_ready_health():
    resp = client.get("/health/ready")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ready"


def test_metrics_exposes_cascade_counters():
    resp = client.get("/metrics")
    assert resp.status_code == 200
    body = resp.json()
    assert "cascades" in body
    assert "cascade_deleted" in body
