"""Integration tests for API endpoints"""

import pytest
from unittest.mock import AsyncMock, patch
from fastapi.testclient import TestClient
from astral_gateway.domain.exceptions import AdvisoryAPIError
from astral_gateway.domain.models import AdvisorInsights


@pytest.fixture
def camry() -> dict:
    return {"model": "Camry", "price": 32000, "image": "camry.jpg", "style": "Sedan", "seating_capacity": 5}


@pytest.fixture
def saved_plan_id(client: TestClient, camry: dict) -> str:
    """Financing plan for the Camry saved against the default profile"""
    response = client.post("/v1/users/u1/plans", json={"vehicle": camry, "plan_type": "Financing"})
    assert response.status_code == 201
    return response.json()["plan_id"]


@pytest.fixture
def loan_id(client: TestClient, saved_plan_id: str) -> str:
    response = client.post("/v1/users/u1/loans", json={"plan_id": saved_plan_id})
    assert response.status_code == 201
    return response.json()["loan"]["id"]


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_metrics_endpoint(client: TestClient, camry: dict):
    """Test Prometheus metrics endpoint"""
    client.post("/v1/quote", json={"vehicle": camry, "user_input": {}})

    response = client.get("/metrics")
    assert response.status_code == 200
    assert "astral_plans_computed_total" in response.text


def test_request_id_is_echoed(client: TestClient):
    response = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"


def test_quote_endpoint(client: TestClient, camry: dict):
    """Test POST /v1/quote prices both plan variants"""
    response = client.post("/v1/quote", json={"vehicle": camry, "user_input": {}})

    assert response.status_code == 200
    data = response.json()
    assert data["interest_rate"] == 0.065
    assert data["financing"]["plan_type"] == "Financing"
    assert data["financing"]["loan_amount"] == 27000
    assert data["financing"]["monthly_payment"] == pytest.approx(528.28, abs=0.05)
    assert data["leasing"]["plan_type"] == "Leasing"
    assert data["leasing"]["term_months"] == 36
    assert data["affordability"]["min"] == pytest.approx(data["affordability"]["max"] * 0.7)


def test_quote_rejects_out_of_range_input(client: TestClient, camry: dict):
    response = client.post("/v1/quote", json={"vehicle": camry, "user_input": {"credit_score": 900}})
    assert response.status_code == 422


def test_affordability_endpoint(client: TestClient):
    response = client.post("/v1/affordability", json={"user_input": {"income": 0, "down_payment": 4000}})

    assert response.status_code == 200
    assert response.json()["affordability"] == {"min": pytest.approx(2800), "max": 4000}


def test_recommendations_endpoint(client: TestClient, camry: dict):
    vehicles = [
        camry,
        {"model": "Corolla", "price": 25000, "style": "Sedan"},
        {"model": "Sequoia", "price": 80000, "style": "SUV"},
    ]
    response = client.post(
        "/v1/recommendations",
        json={"vehicles": vehicles, "user_input": {}, "top_models": ["Camry"]},
    )

    assert response.status_code == 200
    data = response.json()
    assert [r["vehicle"]["model"] for r in data["recommendations"]] == ["Camry", "Corolla"]
    assert data["recommendations"][0]["is_top_match"] is True
    assert sorted(data["advisor_candidates"]) == ["Camry", "Corolla"]


def test_profile_defaults_and_update(client: TestClient):
    """Test GET/PUT /v1/users/{user_id}/profile"""
    response = client.get("/v1/users/u1/profile")
    assert response.status_code == 200
    assert response.json()["user_input"]["income"] == 75000
    assert response.json()["user_input"]["credit_score"] == 720

    update = {"income": 98000, "credit_score": 765, "down_payment": 8000, "loan_term_years": 4}
    assert client.put("/v1/users/u1/profile", json=update).status_code == 200

    stored = client.get("/v1/users/u1/profile").json()["user_input"]
    assert stored["income"] == 98000
    assert stored["credit_score"] == 765
    assert stored["preferences"] == {"styles": [], "use_cases": [], "description": ""}


def test_save_plan_uses_stored_profile(client: TestClient, camry: dict):
    client.put("/v1/users/u1/profile", json={"credit_score": 780, "down_payment": 2000})

    response = client.post("/v1/users/u1/plans", json={"vehicle": camry})

    assert response.status_code == 201
    plan = response.json()["plan"]
    assert plan["interest_rate"] == 0.05
    assert plan["loan_amount"] == 30000


def test_save_leasing_plan(client: TestClient, camry: dict):
    response = client.post("/v1/users/u1/plans", json={"vehicle": camry, "plan_type": "Leasing"})

    assert response.status_code == 201
    assert response.json()["plan"]["plan_type"] == "Leasing"
    assert response.json()["plan"]["residual_value"] == pytest.approx(17600)


def test_saving_same_plan_twice_conflicts(client: TestClient, camry: dict, saved_plan_id: str):
    """Plan ids are timestamp + model, so a repeat within the same instant clashes"""
    response = client.post("/v1/users/u1/plans", json={"vehicle": camry})
    assert response.status_code == 409


def test_list_and_delete_plans(client: TestClient, camry: dict, saved_plan_id: str):
    client.post("/v1/users/u1/plans", json={"vehicle": {**camry, "model": "Prius", "price": 29000}})

    plans = client.get("/v1/users/u1/plans").json()["plans"]
    assert len(plans) == 2

    assert client.delete(f"/v1/users/u1/plans/{saved_plan_id}").status_code == 204
    assert client.delete(f"/v1/users/u1/plans/{saved_plan_id}").status_code == 404
    assert len(client.get("/v1/users/u1/plans").json()["plans"]) == 1

    assert client.delete("/v1/users/u1/plans").status_code == 204
    assert client.get("/v1/users/u1/plans").json()["plans"] == []


def test_plans_are_scoped_to_user(client: TestClient, saved_plan_id: str):
    assert client.get("/v1/users/u2/plans").json()["plans"] == []
    assert client.post("/v1/users/u2/loans", json={"plan_id": saved_plan_id}).status_code == 404


def test_commit_plan(client: TestClient, saved_plan_id: str):
    """Test POST /v1/users/{user_id}/loans creates a tracked loan"""
    response = client.post("/v1/users/u1/loans", json={"plan_id": saved_plan_id})

    assert response.status_code == 201
    data = response.json()
    assert data["already_committed"] is False
    loan = data["loan"]
    assert loan["id"] == saved_plan_id
    assert loan["plan_type"] == "Financing"
    assert loan["amount_left"] == 27000
    assert loan["initial_loan_amount"] == 27000
    assert loan["loan_term_months"] == 60
    assert loan["payment_day_of_month"] == 20
    assert loan["on_track"] is True
    assert loan["end_date"] == "2029-07-20"


def test_commit_twice_reports_already_committed(client: TestClient, saved_plan_id: str):
    first = client.post("/v1/users/u1/loans", json={"plan_id": saved_plan_id})
    second = client.post("/v1/users/u1/loans", json={"plan_id": saved_plan_id})

    assert first.status_code == 201
    assert second.status_code == 200
    assert second.json()["already_committed"] is True
    assert len(client.get("/v1/users/u1/loans").json()["loans"]) == 1


def test_commit_unknown_plan(client: TestClient):
    response = client.post("/v1/users/u1/loans", json={"plan_id": "missing"})
    assert response.status_code == 404


def test_deleting_saved_plan_keeps_loan(client: TestClient, saved_plan_id: str, loan_id: str):
    client.delete("/v1/users/u1/plans")
    loans = client.get("/v1/users/u1/loans").json()["loans"]
    assert [loan["id"] for loan in loans] == [loan_id]


def test_make_payment(client: TestClient, loan_id: str):
    """Test POST /v1/users/{user_id}/loans/{loan_id}/payments"""
    response = client.post(f"/v1/users/u1/loans/{loan_id}/payments", json={"amount": 500})

    assert response.status_code == 200
    assert response.json()["loan"]["amount_left"] == 26500

    listed = client.get("/v1/users/u1/loans").json()["loans"][0]
    assert listed["amount_left"] == 26500


@pytest.mark.parametrize("amount", [0, -10, 27000.5])
def test_invalid_payment_rejected(client: TestClient, loan_id: str, amount: float):
    response = client.post(f"/v1/users/u1/loans/{loan_id}/payments", json={"amount": amount})

    assert response.status_code == 422
    assert client.get("/v1/users/u1/loans").json()["loans"][0]["amount_left"] == 27000


def test_payment_for_unknown_loan(client: TestClient):
    response = client.post("/v1/users/u1/loans/missing/payments", json={"amount": 100})
    assert response.status_code == 404


def test_schedule_endpoint(client: TestClient, loan_id: str):
    """Test GET /v1/users/{user_id}/schedule"""
    response = client.get("/v1/users/u1/schedule")

    assert response.status_code == 200
    data = response.json()
    assert data["start"] == "2024-07-20"
    assert len(data["events"]) == 60
    assert data["events"][0]["due_date"] == "2024-07-20"
    assert data["events"][0]["payments_remaining"] == 60
    assert data["events"][0]["loan_id"] == loan_id


def test_schedule_window(client: TestClient, loan_id: str):
    response = client.get("/v1/users/u1/schedule", params={"start": "2024-08-01", "until": "2024-10-31"})
    assert [e["due_date"] for e in response.json()["events"]] == ["2024-08-20", "2024-09-20", "2024-10-20"]

    response = client.get("/v1/users/u1/schedule", params={"start": "2024-10-01", "until": "2024-08-01"})
    assert response.json()["events"] == []


@patch("astral_gateway.infrastructure.clients.advisory.AdvisoryClient.get_timeline_summary")
def test_timeline_summary(mock_summary: AsyncMock, client: TestClient, loan_id: str):
    mock_summary.return_value = "One payment of $528 next month."

    response = client.get("/v1/users/u1/timeline/summary")

    assert response.status_code == 200
    assert response.json()["summary"] == "One payment of $528 next month."
    loans, events, today = mock_summary.call_args.args
    assert [loan.id for loan in loans] == [loan_id]
    assert len(events) == 60


@patch("astral_gateway.infrastructure.clients.advisory.AdvisoryClient.get_timeline_summary")
def test_timeline_summary_advisory_down(mock_summary: AsyncMock, client: TestClient, loan_id: str):
    mock_summary.side_effect = AdvisoryAPIError("Advisory API error: 503")

    response = client.get("/v1/users/u1/timeline/summary")
    assert response.status_code == 503


def test_timeline_summary_without_loans(client: TestClient):
    assert client.get("/v1/users/nobody/timeline/summary").status_code == 404


@patch("astral_gateway.infrastructure.clients.advisory.AdvisoryClient.get_financing_advice")
def test_financing_advice(mock_advice: AsyncMock, client: TestClient, camry: dict):
    mock_advice.return_value = "Comfortably affordable."

    response = client.post("/v1/advice/financing", json={"vehicle": camry, "user_input": {}})

    assert response.status_code == 200
    assert response.json()["advice"] == "Comfortably affordable."
    assert response.json()["plan"]["loan_amount"] == 27000


@patch("astral_gateway.infrastructure.clients.advisory.AdvisoryClient.get_financial_insights")
def test_insights_rank_advisor_picks_first(mock_insights: AsyncMock, client: TestClient, camry: dict):
    """Affordable matches go to the advisor; its picks lead the ranked catalog"""
    mock_insights.return_value = AdvisorInsights(recommended_models=["Camry"], financial_tips="Keep the term short.")
    vehicles = [camry, {"model": "Corolla", "price": 22000}, {"model": "Supra", "price": 60000}]

    response = client.post("/v1/insights", json={"vehicles": vehicles, "user_input": {}})

    assert response.status_code == 200
    data = response.json()
    assert data["recommended_models"] == ["Camry"]
    assert data["financial_tips"] == "Keep the term short."
    assert [(r["vehicle"]["model"], r["is_top_match"]) for r in data["recommendations"]] == [
        ("Camry", True),
        ("Corolla", False),
    ]
    description, candidates = mock_insights.call_args.args
    assert description == ""
    assert [v.model for v in candidates] == ["Camry", "Corolla"]


@patch("astral_gateway.infrastructure.clients.advisory.AdvisoryClient.get_financial_insights")
def test_insights_advisory_down(mock_insights: AsyncMock, client: TestClient, camry: dict):
    mock_insights.side_effect = AdvisoryAPIError("Advisory API error: 500")

    response = client.post("/v1/insights", json={"vehicles": [camry], "user_input": {}})
    assert response.status_code == 503


@patch("astral_gateway.infrastructure.clients.advisory.AdvisoryClient.get_saved_plans_summary")
def test_saved_plans_summary(mock_summary: AsyncMock, client: TestClient, saved_plan_id: str):
    mock_summary.return_value = "The Camry plan is your only option."

    response = client.get("/v1/users/u1/plans/summary")

    assert response.status_code == 200
    assert response.json()["summary"] == "The Camry plan is your only option."
    (plans,) = mock_summary.call_args.args
    assert [p.id for p in plans] == [saved_plan_id]


def test_saved_plans_summary_without_plans(client: TestClient):
    response = client.get("/v1/users/nobody/plans/summary")

    assert response.status_code == 200
    assert response.json()["summary"] == "You have no saved plans to summarize."


@patch("astral_gateway.infrastructure.clients.advisory.AdvisoryClient.get_chat_response")
def test_chat_uses_stored_context(mock_chat: AsyncMock, client: TestClient, saved_plan_id: str):
    mock_chat.return_value = "  The Camry fits your budget.  "
    body = {
        "message": "Can I afford it?",
        "history": [{"sender": "user", "text": "Hi"}, {"sender": "ai", "text": "Hello!"}],
        "view": "saved",
    }

    response = client.post("/v1/users/u1/chat", json=body)

    assert response.status_code == 200
    assert response.json()["reply"] == "The Camry fits your budget."
    history, message, context = mock_chat.call_args.args
    assert [m.sender for m in history] == ["user", "ai"]
    assert message == "Can I afford it?"
    assert "on the 'saved' page" in context
    assert "saved vehicle plans: Camry" in context


@patch("astral_gateway.infrastructure.clients.advisory.AdvisoryClient.get_chat_response")
def test_chat_advisory_down(mock_chat: AsyncMock, client: TestClient):
    mock_chat.side_effect = AdvisoryAPIError("Advisory API unreachable after 3 attempts")

    response = client.post("/v1/users/u1/chat", json={"message": "Hello"})
    assert response.status_code == 503


def test_chat_requires_message(client: TestClient):
    assert client.post("/v1/users/u1/chat", json={"message": ""}).status_code == 422


def test_saved_conversations(client: TestClient):
    """Test POST and GET /v1/users/{user_id}/conversations"""
    first = client.post("/v1/users/u1/conversations", json={"messages": [{"sender": "user", "text": "Hi"}]})
    second = client.post(
        "/v1/users/u1/conversations",
        json={"messages": [{"sender": "user", "text": "Lease?"}, {"sender": "ai", "text": "Maybe."}]},
    )
    assert first.status_code == 201
    assert second.status_code == 201

    conversations = client.get("/v1/users/u1/conversations").json()["conversations"]
    assert [c["conversation_id"] for c in conversations] == [
        second.json()["conversation_id"],
        first.json()["conversation_id"],
    ]
    assert conversations[0]["messages"][1] == {"sender": "ai", "text": "Maybe."}
    assert client.get("/v1/users/u2/conversations").json()["conversations"] == []
    assert client.post("/v1/users/u1/conversations", json={"messages": []}).status_code == 422


def test_sample_profiles(client: TestClient, loan_id: str):
    """Test snapshot, overwrite and delete of /v1/samples"""
    created = client.post("/v1/samples", json={"name": "Demo", "user_id": "u1"})
    assert created.status_code == 201
    sample = created.json()
    assert sample["name"] == "Demo"
    assert sample["sample_id"].startswith("sample-")
    assert [loan["id"] for loan in sample["loans"]] == [loan_id]

    assert len(client.get("/v1/samples").json()["samples"]) == 1

    overwritten = client.put(f"/v1/samples/{sample['sample_id']}", json={"user_id": "nobody"})
    assert overwritten.status_code == 200
    assert overwritten.json()["loans"] == []

    assert client.delete(f"/v1/samples/{sample['sample_id']}").status_code == 204
    assert client.delete(f"/v1/samples/{sample['sample_id']}").status_code == 404
    assert client.put("/v1/samples/missing", json={"user_id": "u1"}).status_code == 404
