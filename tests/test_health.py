import taskflow.routes.health as health

def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"

def test_ready_reports_failing_dependency(client, monkeypatch):
    monkeypatch.setattr(health, "db_ping", lambda: None)
    monkeypatch.setattr(health, "redis_ping", lambda: "ConnectionError")

    r = client.get("/ready")
    assert r.status_code == 503
    assert r.json() == {
        "status": "unready",
        "checks": {"db": True, "redis": False},
        "errors": {"redis": "ConnectionError"},
    }

def test_ready_ok(client, monkeypatch):
    monkeypatch.setattr(health, "db_ping", lambda: None)
    monkeypatch.setattr(health, "redis_ping", lambda: None)

    r = client.get("/ready")
    assert r.status_code == 200
    assert r.json() == {"status": "ok", "checks": {"db": True, "redis": True}}
