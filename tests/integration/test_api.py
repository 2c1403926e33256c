"""Integration tests for API endpoints"""

import pytest
from fastapi.testclient import TestClient
from finsight_gateway.api.dependencies import get_bureau_orchestrator
from finsight_gateway.services.bureau import BureauCheckOrchestrator
from conftest import GOOD_SCORE


@pytest.fixture
def use_bureau(client: TestClient, db, bureau_stub, fake_sleep):
    """Point the bureau endpoints at a scripted bureau; returns the stub"""

    def _use(*replies, **config_overrides):
        stub = bureau_stub(*replies)

        def override():
            return BureauCheckOrchestrator(db, stub.client(**config_overrides), sleep=fake_sleep)

        client.app.dependency_overrides[get_bureau_orchestrator] = override
        return stub

    return _use


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.json()["database"] == "connected"


def test_metrics_endpoint(client: TestClient):
    """Test Prometheus metrics endpoint"""
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "finsight_bureau_check_total" in response.text


def test_request_id_is_propagated(client: TestClient):
    response = client.get("/health", headers={"X-Request-ID": "trace-123"})
    assert response.headers["X-Request-ID"] == "trace-123"


def test_run_insights_endpoint(client: TestClient, create_statement, sample_lines):
    """Test POST /v1/insights/run"""
    statement_id = create_statement(user_id=5, lines=sample_lines)

    response = client.post("/v1/insights/run", json={"statement_id": statement_id, "user_id": 5})

    assert response.status_code == 200
    data = response.json()
    assert data["statement_id"] == statement_id
    assert data["three_month_avg_income"] == 5000
    assert data["net_amount"] == data["total_inflow"] - data["total_outflow"]
    assert data["spend_buckets"]["Food & Dining"] == 225
    assert data["risk_flags"] == []


def test_run_insights_twice_returns_same_insight(client: TestClient, create_statement, sample_lines):
    statement_id = create_statement(user_id=5, lines=sample_lines)

    first = client.post("/v1/insights/run", json={"statement_id": statement_id, "user_id": 5})
    second = client.post("/v1/insights/run", json={"statement_id": statement_id, "user_id": 5})

    assert first.json()["id"] == second.json()["id"]


def test_run_insights_unknown_statement(client: TestClient):
    response = client.post("/v1/insights/run", json={"statement_id": 404, "user_id": 5})
    assert response.status_code == 404
    assert response.json()["detail"] == "Statement not found"


def test_run_insights_validates_body(client: TestClient):
    response = client.post("/v1/insights/run", json={"user_id": 5})
    assert response.status_code == 422


def test_get_and_list_insights(client: TestClient, create_statement, sample_lines):
    """Test GET /v1/insights/{id} and GET /v1/insights"""
    first_id = client.post(
        "/v1/insights/run",
        json={"statement_id": create_statement(user_id=5, lines=sample_lines), "user_id": 5},
    ).json()["id"]
    second_id = client.post(
        "/v1/insights/run",
        json={"statement_id": create_statement(user_id=5, lines=sample_lines), "user_id": 5},
    ).json()["id"]

    response = client.get(f"/v1/insights/{first_id}?user_id=5")
    assert response.status_code == 200
    assert response.json()["id"] == first_id

    assert client.get(f"/v1/insights/{first_id}?user_id=6").status_code == 404

    listing = client.get("/v1/insights?user_id=5").json()
    assert listing["user_id"] == 5
    assert [i["id"] for i in listing["insights"]] == [second_id, first_id]


def test_check_credit_endpoint(client: TestClient, use_bureau):
    """Test POST /v1/bureau/check"""
    stub = use_bureau((200, GOOD_SCORE))

    response = client.post("/v1/bureau/check", json={"user_id": 11})

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "completed"
    assert data["credit_score"] == 712
    assert data["risk_band"] == "Good"
    assert stub.call_count == 1


def test_check_credit_cached_on_second_call(client: TestClient, use_bureau):
    stub = use_bureau((200, GOOD_SCORE))

    first = client.post("/v1/bureau/check", json={"user_id": 11}).json()
    second = client.post("/v1/bureau/check", json={"user_id": 11}).json()

    assert first["id"] == second["id"]
    assert stub.call_count == 1


def test_check_credit_failure_is_bad_request(client: TestClient, use_bureau):
    use_bureau((401, {"message": "Please provide a valid X-API-KEY header"}))

    response = client.post("/v1/bureau/check", json={"user_id": 11})

    assert response.status_code == 400
    assert response.json()["detail"] == (
        "Credit bureau check failed: Bureau API error: 401 - Please provide a valid X-API-KEY header"
    )

    reports = client.get("/v1/bureau/reports?user_id=11").json()["reports"]
    assert len(reports) == 1
    assert reports[0]["status"] == "failed"
    assert reports[0]["error_message"] == "Bureau API error: 401 - Please provide a valid X-API-KEY header"


def test_check_credit_misconfigured(client: TestClient, use_bureau):
    stub = use_bureau((200, GOOD_SCORE), api_url="")

    response = client.post("/v1/bureau/check", json={"user_id": 11})

    assert response.status_code == 400
    assert "BUREAU_API_URL" in response.json()["detail"]
    assert stub.call_count == 0


def test_get_bureau_report_endpoint(client: TestClient, use_bureau):
    """Test GET /v1/bureau/reports/{id}"""
    use_bureau((200, GOOD_SCORE))
    report_id = client.post("/v1/bureau/check", json={"user_id": 11}).json()["id"]

    response = client.get(f"/v1/bureau/reports/{report_id}?user_id=11")
    assert response.status_code == 200
    assert response.json()["credit_score"] == 712

    assert client.get(f"/v1/bureau/reports/{report_id}?user_id=12").status_code == 404
