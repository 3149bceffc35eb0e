from __future__ import annotations

from fastapi.testclient import TestClient

from prediction_tracker.core.middleware import SECURITY_HEADERS


def test_preserves_incoming_request_id_header(client: TestClient):
    incoming_id = "test-request-id-123"
    resp = client.get("/health", headers={"X-Request-ID": incoming_id})

    assert resp.status_code == 200
    assert resp.headers.get("X-Request-ID") == incoming_id


def test_generates_request_id_when_missing(client: TestClient):
    resp = client.get("/health")

    assert resp.status_code == 200
    generated = resp.headers.get("X-Request-ID")
    assert generated
    assert isinstance(generated, str)

    duration = resp.headers.get("X-Request-Duration-ms")
    assert duration is not None


def test_error_body_carries_request_id(client: TestClient):
    resp = client.get("/api/predictions/999", headers={"X-Request-ID": "trace-404"})

    assert resp.status_code == 404
    assert resp.json()["error"]["request_id"] == "trace-404"
    assert resp.headers.get("X-Request-ID") == "trace-404"


def test_security_headers_on_success_and_error(client: TestClient):
    ok = client.get("/health")
    not_found = client.get("/api/predictions/999")

    for resp in (ok, not_found):
        for name, value in SECURITY_HEADERS.items():
            assert resp.headers.get(name) == value


def test_health_reports_database(client: TestClient):
    resp = client.get("/health")

    assert resp.json() == {"status": "ok", "database": "ok"}
