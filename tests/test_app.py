def test_health_endpoint(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "OK"
    assert body["timestamp"]


def test_api_root_lists_endpoints(client):
    resp = client.get("/api")
    assert resp.status_code == 200
    assert resp.json()["endpoints"]["enquiries"] == "/api/enquiries"


def test_unknown_route_uses_error_envelope(client):
    resp = client.get("/api/nope")
    assert resp.status_code == 404
    assert resp.json()["status"] == "error"
