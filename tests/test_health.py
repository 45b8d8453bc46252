def test_health(client):
    body = client.get("/api/health").json()
    assert body["ok"] is True
    assert body["db_time"]


def test_version(client):
    assert client.get("/api/version").json() == {"version": "1.0.0"}
