"""HTTP tests for the prediction and stats endpoints."""

from __future__ import annotations

from fastapi.testclient import TestClient

from prediction_tracker.api.dependencies import get_prediction_service
from prediction_tracker.main import app
from prediction_tracker.services.prediction_service import PredictionService


def _create(client: TestClient, payload: dict) -> int:
    resp = client.post("/api/predictions", json=payload)
    assert resp.status_code == 200, resp.text
    return resp.json()["id"]


def test_create_prediction_returns_numeric_id(client: TestClient):
    resp = client.post(
        "/api/predictions",
        json={
            "predictor_name": "A",
            "prediction_text": "X",
            "predicted_date": "2020-01-01",
        },
    )

    assert resp.status_code == 200
    body = resp.json()
    assert isinstance(body["id"], int)
    assert body["message"] == "Prediction added successfully"


def test_create_prediction_missing_text(client: TestClient, valid_prediction: dict):
    del valid_prediction["prediction_text"]

    resp = client.post("/api/predictions", json=valid_prediction)

    assert resp.status_code == 400
    error = resp.json()["error"]
    assert error["code"] == "validation_failed"
    assert "Prediction text is required" in error["details"]["errors"]


def test_create_prediction_rejects_non_object_body(client: TestClient):
    resp = client.post("/api/predictions", json=["not", "an", "object"])

    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "invalid_json"


def test_create_prediction_rejects_malformed_json(client: TestClient):
    resp = client.post(
        "/api/predictions",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )

    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "invalid_json"


def test_get_prediction_round_trip(client: TestClient, valid_prediction: dict):
    prediction_id = _create(client, valid_prediction)

    resp = client.get(f"/api/predictions/{prediction_id}")

    assert resp.status_code == 200
    prediction = resp.json()["prediction"]
    assert prediction["id"] == prediction_id
    assert prediction["predictor_name"] == "Ada Lovelace"
    assert prediction["target_date"] == "2030-12-31"
    assert prediction["status"] == "pending"
    assert prediction["verification"] is None


def test_get_unknown_prediction_is_404(client: TestClient):
    resp = client.get("/api/predictions/4242")

    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "prediction_not_found"


def test_get_id_beyond_integer_range_is_404(client: TestClient):
    resp = client.get("/api/predictions/99999999999999999999")

    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "prediction_not_found"


def test_get_non_numeric_id_is_400(client: TestClient):
    resp = client.get("/api/predictions/abc")

    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "invalid_request"


def test_verify_flow(
    client: TestClient, valid_prediction: dict, valid_verification: dict
):
    prediction_id = _create(client, valid_prediction)

    resp = client.post(f"/api/predictions/{prediction_id}/verify", json=valid_verification)

    assert resp.status_code == 200
    assert isinstance(resp.json()["id"], int)
    assert resp.json()["message"] == "Verification added successfully"

    prediction = client.get(f"/api/predictions/{prediction_id}").json()["prediction"]
    assert prediction["status"] == "verified"
    assert prediction["verification"]["outcome"] == "correct"
    assert prediction["verification"]["verified_by"] == "Charles Babbage"


def test_second_verification_is_400(
    client: TestClient, valid_prediction: dict, valid_verification: dict
):
    prediction_id = _create(client, valid_prediction)
    client.post(f"/api/predictions/{prediction_id}/verify", json=valid_verification)

    resp = client.post(f"/api/predictions/{prediction_id}/verify", json=valid_verification)

    assert resp.status_code == 400
    assert resp.json()["error"]["message"] == "Prediction already verified"


def test_verify_unknown_prediction_is_404(client: TestClient, valid_verification: dict):
    resp = client.post("/api/predictions/777/verify", json=valid_verification)

    assert resp.status_code == 404


def test_verify_non_positive_id_is_400(client: TestClient, valid_verification: dict):
    resp = client.post("/api/predictions/0/verify", json=valid_verification)

    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "invalid_prediction_id"


def test_verify_id_beyond_integer_range_is_400(
    client: TestClient, valid_verification: dict
):
    resp = client.post("/api/predictions/99999999999999999999/verify", json=valid_verification)

    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "invalid_prediction_id"


def test_verify_invalid_outcome_is_400(
    client: TestClient, valid_prediction: dict, valid_verification: dict
):
    prediction_id = _create(client, valid_prediction)
    valid_verification["outcome"] = "kind_of"

    resp = client.post(f"/api/predictions/{prediction_id}/verify", json=valid_verification)

    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "validation_failed"


def test_list_filters(client: TestClient, valid_prediction: dict, valid_verification: dict):
    tech_id = _create(client, valid_prediction)
    sports_id = _create(
        client, {**valid_prediction, "category": "sports", "target_date": "2021-01-01"}
    )
    client.post(f"/api/predictions/{tech_id}/verify", json=valid_verification)

    everything = client.get("/api/predictions").json()["predictions"]
    assert [p["id"] for p in everything] == [sports_id, tech_id]

    sports = client.get("/api/predictions", params={"category": "sports"}).json()
    assert [p["id"] for p in sports["predictions"]] == [sports_id]

    overdue = client.get("/api/predictions", params={"status": "overdue"}).json()
    assert [p["id"] for p in overdue["predictions"]] == [sports_id]

    verified = client.get("/api/predictions", params={"status": "verified"}).json()
    assert [p["id"] for p in verified["predictions"]] == [tech_id]


def test_list_unknown_filter_is_400(client: TestClient):
    resp = client.get("/api/predictions", params={"category": "astrology"})

    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "invalid_filter"


def test_stats(client: TestClient, valid_prediction: dict, valid_verification: dict):
    first = _create(client, valid_prediction)
    _create(client, {**valid_prediction, "predictor_name": "Grace Hopper"})
    client.post(f"/api/predictions/{first}/verify", json=valid_verification)

    stats = client.get("/api/stats").json()

    assert stats["total_predictions"] == 2
    assert stats["verified_predictions"] == 1
    assert stats["pending_predictions"] == 1
    assert stats["verification_rate"] == 50.0
    assert stats["outcome_stats"] == [{"outcome": "correct", "count": 1}]
    assert stats["category_stats"] == [{"category": "technology", "count": 2}]

    by_name = {p["predictor_name"]: p for p in stats["predictor_stats"]}
    assert by_name["Ada Lovelace"]["accuracy"] == 100.0
    assert by_name["Grace Hopper"]["accuracy"] is None


def test_routers_share_service_dependency(client: TestClient, db_session):
    seen = []

    def _tracking_service():
        service = PredictionService(db_session)
        seen.append(service)
        return service

    app.dependency_overrides[get_prediction_service] = _tracking_service
    try:
        assert client.get("/api/stats").status_code == 200
        assert client.get("/api/predictions").status_code == 200
    finally:
        app.dependency_overrides.pop(get_prediction_service, None)

    assert len(seen) == 2


def test_iso_week_date_is_rejected(client: TestClient, valid_prediction: dict):
    resp = client.post(
        "/api/predictions", json={**valid_prediction, "predicted_date": "2020-W01-1"}
    )

    assert resp.status_code == 400
    errors = resp.json()["error"]["details"]["errors"]
    assert "Predicted date must be a valid date (YYYY-MM-DD)" in errors


def test_escaped_name_over_limit_is_400(client: TestClient, valid_prediction: dict):
    resp = client.post("/api/predictions", json={**valid_prediction, "predictor_name": "&" * 100})

    assert resp.status_code == 400
    errors = resp.json()["error"]["details"]["errors"]
    assert "Predictor name must be at most 100 characters" in errors


def test_submitted_text_is_escaped(client: TestClient, valid_prediction: dict):
    prediction_id = _create(client, {**valid_prediction, "notes": "Fish & chips <b>daily</b>"})

    prediction = client.get(f"/api/predictions/{prediction_id}").json()["prediction"]

    assert prediction["notes"] == "Fish &amp; chips &lt;b&gt;daily&lt;/b&gt;"
